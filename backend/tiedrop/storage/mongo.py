"""MongoDB storage backend.

Collections: `users` keyed by the provider id, `scores` and `messages`
stamped with a `seq` from the `counters` collection so ledger and chat
order do not depend on clock resolution.
"""

from contextlib import contextmanager
from typing import List, Optional

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from tiedrop.entities import ChatMessage, LeaderboardEntry, Profile, ScoreEvent, utcnow
from tiedrop.errors import IntegrityViolation, StorageUnavailable
from .base import ScoreStorage


@contextmanager
def _guard(operation: str):
    try:
        yield
    except (PyMongoError, OverflowError) as exc:
        raise StorageUnavailable(f"{operation} failed: {exc}") from exc


def _profile(doc) -> Profile:
    return Profile(
        id=doc['_id'],
        username=doc['username'],
        display_name=doc.get('display_name'),
        avatar_url=doc.get('photo_url'),
        profile_url=doc.get('profile_url'),
    )


class MongoStorage(ScoreStorage):
    def __init__(self, database):
        self.db = database

    def _next_seq(self, name: str) -> int:
        counter = self.db.counters.find_one_and_update(
            {'_id': name},
            {'$inc': {'seq': 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter['seq']

    def upsert_identity(self, profile: Profile) -> Profile:
        with _guard('upsert_identity'):
            self.db.users.update_one(
                {'_id': profile.id},
                {'$set': {
                    'username': profile.username,
                    'display_name': profile.display_name,
                    'photo_url': profile.avatar_url,
                    'profile_url': profile.profile_url,
                }},
                upsert=True,
            )
        return profile

    def get_identity(self, identity_id: str) -> Optional[Profile]:
        with _guard('get_identity'):
            doc = self.db.users.find_one({'_id': identity_id})
        return _profile(doc) if doc else None

    def append_score(self, identity_id: str, score: int) -> ScoreEvent:
        with _guard('append_score'):
            if self.db.users.find_one({'_id': identity_id}, {'_id': 1}) is None:
                raise IntegrityViolation(f"cannot record score for unknown identity {identity_id!r}")
            event = ScoreEvent(id=self._next_seq('scores'), identity_id=identity_id, score=int(score), submitted_at=utcnow())
            self.db.scores.insert_one({
                'seq': event.id,
                'identity_id': event.identity_id,
                'score': event.score,
                'timestamp': event.submitted_at,
            })
        return event

    def query_leaderboard(self, limit: Optional[int]) -> List[LeaderboardEntry]:
        if limit is not None and limit <= 0:
            return []
        pipeline = [
            # Within an identity the first document is its earliest best score
            {'$sort': {'score': -1, 'seq': 1}},
            {'$group': {
                '_id': '$identity_id',
                'best_score': {'$max': '$score'},
                'first_seq': {'$first': '$seq'},
            }},
            {'$sort': {'best_score': -1, 'first_seq': 1, '_id': 1}},
        ]
        if limit is not None:
            pipeline.append({'$limit': int(limit)})
        pipeline.append({'$lookup': {'from': 'users', 'localField': '_id', 'foreignField': '_id', 'as': 'user'}})

        with _guard('query_leaderboard'):
            rows = list(self.db.scores.aggregate(pipeline))

        entries = []
        for idx, row in enumerate(rows, start=1):
            if not row.get('user'):
                raise IntegrityViolation(f"score ledger references unknown identity {row['_id']!r}")
            entries.append(LeaderboardEntry(
                rank=idx,
                identity_id=row['_id'],
                best_score=row['best_score'],
                profile=_profile(row['user'][0]),
            ))
        return entries

    def append_message(self, user: str, text: str) -> ChatMessage:
        with _guard('append_message'):
            message = ChatMessage(id=self._next_seq('messages'), user=user, text=text, timestamp=utcnow())
            self.db.messages.insert_one({
                'seq': message.id,
                'user': message.user,
                'text': message.text,
                'timestamp': message.timestamp,
            })
        return message

    def query_recent_messages(self, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        with _guard('query_recent_messages'):
            docs = list(self.db.messages.find().sort('seq', -1).limit(limit))
        return [
            ChatMessage(id=doc['seq'], user=doc['user'], text=doc['text'], timestamp=doc.get('timestamp'))
            for doc in reversed(docs)
        ]
