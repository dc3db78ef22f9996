from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from flask_login import UserMixin


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Profile(UserMixin):
    """Display profile cached for an externally authenticated user.

    Doubles as the Flask-Login user object, so `get_id()` returns the
    external provider key.
    """
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    profile_url: Optional[str] = None

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'display_name': self.display_name,
            'avatar_url': self.avatar_url,
            'profile_url': self.profile_url,
        }


@dataclass(frozen=True)
class ScoreEvent:
    id: int
    identity_id: str
    score: int
    submitted_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    identity_id: str
    best_score: int
    profile: Profile

    def to_dict(self):
        return {
            'rank': self.rank,
            'username': self.profile.username,
            'display_name': self.profile.display_name,
            'avatar_url': self.profile.avatar_url,
            'profile_url': self.profile.profile_url,
            'best_score': self.best_score,
        }


@dataclass(frozen=True)
class ChatMessage:
    id: int
    user: str
    text: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user': self.user,
            'text': self.text,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }
