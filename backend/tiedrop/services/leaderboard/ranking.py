from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from tiedrop.entities import LeaderboardEntry, Profile, ScoreEvent
from tiedrop.errors import IntegrityViolation


def best_scores(events: Iterable[ScoreEvent]) -> Dict[str, Tuple[int, int]]:
    """Map identity -> (best score, ledger id of the first event reaching it)."""
    best: Dict[str, Tuple[int, int]] = {}
    for ev in events:
        current = best.get(ev.identity_id)
        if current is None or ev.score > current[0] or (ev.score == current[0] and ev.id < current[1]):
            best[ev.identity_id] = (ev.score, ev.id)
    return best


def compute_leaderboard(
    events: Iterable[ScoreEvent],
    profiles: Mapping[str, Profile],
    limit: Optional[int] = None,
) -> List[LeaderboardEntry]:
    """Rank identities by best score.

    Highest best score first. Equal best scores go to whoever reached the
    score first (lowest ledger id), then to identity key order.
    """
    best = best_scores(events)
    ordered = sorted(best.items(), key=lambda item: (-item[1][0], item[1][1], item[0]))
    if limit is not None:
        ordered = ordered[:max(0, int(limit))]

    entries = []
    for idx, (identity_id, (score, _first_id)) in enumerate(ordered, start=1):
        profile = profiles.get(identity_id)
        if profile is None:
            raise IntegrityViolation(f"score ledger references unknown identity {identity_id!r}")
        entries.append(LeaderboardEntry(rank=idx, identity_id=identity_id, best_score=score, profile=profile))
    return entries
