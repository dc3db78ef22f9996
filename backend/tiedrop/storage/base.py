from abc import ABC, abstractmethod
from typing import List, Optional

from tiedrop.entities import ChatMessage, LeaderboardEntry, Profile, ScoreEvent


class ScoreStorage(ABC):
    """Append/query capabilities the score and chat services need.

    Adapters raise StorageUnavailable for engine failures and
    IntegrityViolation when a score or leaderboard row has no identity.
    """

    @abstractmethod
    def upsert_identity(self, profile: Profile) -> Profile:
        ...

    @abstractmethod
    def get_identity(self, identity_id: str) -> Optional[Profile]:
        ...

    @abstractmethod
    def append_score(self, identity_id: str, score: int) -> ScoreEvent:
        ...

    @abstractmethod
    def query_leaderboard(self, limit: Optional[int]) -> List[LeaderboardEntry]:
        """Ranked best scores, highest first, at most `limit` rows."""

    @abstractmethod
    def append_message(self, user: str, text: str) -> ChatMessage:
        ...

    @abstractmethod
    def query_recent_messages(self, limit: int) -> List[ChatMessage]:
        """The latest `limit` messages, oldest first."""
