from typing import List, Optional

from flask import current_app

from tiedrop.broadcast import Broadcaster
from tiedrop.entities import ChatMessage, LeaderboardEntry, Profile, ScoreEvent
from tiedrop.errors import IntegrityViolation, StorageUnavailable, Unauthenticated
from tiedrop.storage.base import ScoreStorage
from .placement import PODIUM_SIZE, announcement_text, detect_placement

MAX_LEADERBOARD_LIMIT = 20
# Largest value a 64-bit score column holds
MAX_SCORE = 2 ** 63 - 1


def submit_score(storage: ScoreStorage, broadcaster: Broadcaster, identity: Optional[Profile], score: int) -> ScoreEvent:
    """Record a score and announce it if it just earned a podium spot.

    The ledger append is the commit point: anything that goes wrong while
    working out the announcement is logged and does not fail the submission.
    """
    if identity is None:
        raise Unauthenticated('Not authenticated')

    event = storage.append_score(identity.id, score)
    current_app.logger.info(f"[score] identity={identity.id} score={event.score} id={event.id}")

    try:
        announce_placement(storage, broadcaster, identity, event)
    except (StorageUnavailable, IntegrityViolation) as exc:
        current_app.logger.error(f"[announce-failed] identity={identity.id} score_id={event.id} error={exc}")
    return event


def announce_placement(storage: ScoreStorage, broadcaster: Broadcaster, identity: Profile, event: ScoreEvent) -> Optional[ChatMessage]:
    depth = int(current_app.config.get('PLACEMENT_DEPTH', PODIUM_SIZE))
    top = storage.query_leaderboard(depth)
    rank = detect_placement(event, top, depth)
    if rank is None:
        return None

    text = announcement_text(rank, identity.username, event.score)
    message = storage.append_message(current_app.config.get('SYSTEM_AUTHOR', 'SYSTEM'), text)
    broadcaster.publish(message)
    current_app.logger.info(f"[announce] identity={identity.id} rank={rank} score={event.score} message={message.id}")
    return message


def get_leaderboard(storage: ScoreStorage, limit: Optional[int] = None) -> List[LeaderboardEntry]:
    cap = int(current_app.config.get('LEADERBOARD_LIMIT', MAX_LEADERBOARD_LIMIT))
    if limit is None:
        limit = cap
    limit = min(int(limit), cap)
    if limit <= 0:
        return []
    return storage.query_leaderboard(limit)


def post_chat_message(storage: ScoreStorage, broadcaster: Broadcaster, user: str, text: str) -> ChatMessage:
    message = storage.append_message(user, text)
    broadcaster.publish(message)
    return message
