from typing import Optional, Sequence

from tiedrop.entities import LeaderboardEntry, ScoreEvent

PODIUM_SIZE = 3


def detect_placement(event: ScoreEvent, top: Sequence[LeaderboardEntry], depth: int = PODIUM_SIZE) -> Optional[int]:
    """Return the podium rank `event` just earned, or None.

    Only announces when the identity sits in the first `depth` rows and its
    best score is exactly the submitted one, so a lower score from someone
    already on the podium does not re-announce them.
    """
    for rank, entry in enumerate(top[:depth], start=1):
        if entry.identity_id != event.identity_id:
            continue
        if entry.best_score == event.score:
            return rank
        return None
    return None


def announcement_text(rank: int, username: str, score: int) -> str:
    return f"\U0001F451 @{username} just took #{rank} place with {score} points!"
