"""SQLAlchemy storage backend.

Works against the file-based SQLite database in development and a hosted
Postgres database in production; only the connection URL differs.
"""

from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError

from tiedrop import db
from tiedrop.entities import ChatMessage, LeaderboardEntry, Profile, ScoreEvent
from tiedrop.errors import IntegrityViolation, StorageUnavailable
from tiedrop.models import Message, Score, User
from .base import ScoreStorage


@contextmanager
def _guard(operation: str):
    try:
        yield
    except (SQLAlchemyError, OverflowError, ValueError) as exc:
        db.session.rollback()
        raise StorageUnavailable(f"{operation} failed: {exc}") from exc


class SqlStorage(ScoreStorage):

    def upsert_identity(self, profile: Profile) -> Profile:
        with _guard('upsert_identity'):
            user = db.session.get(User, profile.id)
            if user is None:
                user = User(id=profile.id)
            user.username = profile.username
            user.display_name = profile.display_name
            user.photo_url = profile.avatar_url
            user.profile_url = profile.profile_url
            db.session.add(user)
            db.session.commit()
        return profile

    def get_identity(self, identity_id: str) -> Optional[Profile]:
        with _guard('get_identity'):
            user = db.session.get(User, identity_id)
            return user.to_profile() if user else None

    def append_score(self, identity_id: str, score: int) -> ScoreEvent:
        with _guard('append_score'):
            if db.session.get(User, identity_id) is None:
                raise IntegrityViolation(f"cannot record score for unknown identity {identity_id!r}")
            row = Score(user_id=identity_id, score=int(score))
            db.session.add(row)
            db.session.commit()
            return row.to_event()

    def query_leaderboard(self, limit: Optional[int]) -> List[LeaderboardEntry]:
        with _guard('query_leaderboard'):
            best = (
                db.session.query(Score.user_id.label('user_id'), func.max(Score.score).label('best_score'))
                .group_by(Score.user_id)
                .subquery()
            )
            # First ledger row that reached each best score, for the tie-break
            achieved = (
                db.session.query(
                    best.c.user_id.label('user_id'),
                    best.c.best_score.label('best_score'),
                    func.min(Score.id).label('first_id'),
                )
                .select_from(best)
                .join(Score, and_(Score.user_id == best.c.user_id, Score.score == best.c.best_score))
                .group_by(best.c.user_id, best.c.best_score)
                .subquery()
            )
            query = (
                db.session.query(achieved.c.user_id, achieved.c.best_score, User)
                .select_from(achieved)
                .outerjoin(User, User.id == achieved.c.user_id)
                .order_by(achieved.c.best_score.desc(), achieved.c.first_id.asc(), achieved.c.user_id.asc())
            )
            if limit is not None:
                query = query.limit(max(0, int(limit)))
            rows = query.all()

        entries = []
        for idx, (user_id, best_score, user) in enumerate(rows, start=1):
            if user is None:
                raise IntegrityViolation(f"score ledger references unknown identity {user_id!r}")
            entries.append(LeaderboardEntry(rank=idx, identity_id=user_id, best_score=best_score, profile=user.to_profile()))
        return entries

    def append_message(self, user: str, text: str) -> ChatMessage:
        with _guard('append_message'):
            row = Message(user=user, text=text)
            db.session.add(row)
            db.session.commit()
            return row.to_message()

    def query_recent_messages(self, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        with _guard('query_recent_messages'):
            rows = Message.query.order_by(Message.id.desc()).limit(limit).all()
        return [row.to_message() for row in reversed(rows)]
