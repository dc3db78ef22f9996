"""In-process storage backend."""

import threading
from typing import Dict, List, Optional

from tiedrop.entities import ChatMessage, LeaderboardEntry, Profile, ScoreEvent
from tiedrop.errors import IntegrityViolation
from tiedrop.services.leaderboard.ranking import compute_leaderboard
from .base import ScoreStorage


class MemoryStorage(ScoreStorage):
    def __init__(self):
        self._lock = threading.Lock()
        self._profiles: Dict[str, Profile] = {}
        self._scores: List[ScoreEvent] = []
        self._messages: List[ChatMessage] = []

    def upsert_identity(self, profile: Profile) -> Profile:
        with self._lock:
            self._profiles[profile.id] = profile
        return profile

    def get_identity(self, identity_id: str) -> Optional[Profile]:
        with self._lock:
            return self._profiles.get(identity_id)

    def append_score(self, identity_id: str, score: int) -> ScoreEvent:
        with self._lock:
            if identity_id not in self._profiles:
                raise IntegrityViolation(f"cannot record score for unknown identity {identity_id!r}")
            event = ScoreEvent(id=len(self._scores) + 1, identity_id=identity_id, score=int(score))
            self._scores.append(event)
        return event

    def query_leaderboard(self, limit: Optional[int]) -> List[LeaderboardEntry]:
        with self._lock:
            events = list(self._scores)
            profiles = dict(self._profiles)
        return compute_leaderboard(events, profiles, limit)

    def append_message(self, user: str, text: str) -> ChatMessage:
        with self._lock:
            message = ChatMessage(id=len(self._messages) + 1, user=user, text=text)
            self._messages.append(message)
        return message

    def query_recent_messages(self, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        with self._lock:
            return list(self._messages[-limit:])

    def scores(self) -> List[ScoreEvent]:
        with self._lock:
            return list(self._scores)
