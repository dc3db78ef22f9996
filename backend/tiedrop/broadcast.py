"""In-process fan-out of chat log messages to connected Socket.IO clients.

Each connection gets its own subscriber record. While a new client's
history replay is being loaded from storage, live messages are buffered on
that record and flushed once the replay has been sent, skipping anything
the replay already contained. Storage is never queried under the lock.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Set

from tiedrop.entities import ChatMessage

CHAT_EVENT = 'chat message'

Emitter = Callable[[str, dict, str], None]
HistoryLoader = Callable[[], List[ChatMessage]]


class _Subscriber:
    def __init__(self, sid: str, pending_limit: int):
        self.sid = sid
        self.live = False
        self.pending: Deque[ChatMessage] = deque(maxlen=pending_limit)
        self.replayed_ids: Set[int] = set()


class Broadcaster:
    def __init__(self, emit: Optional[Emitter] = None, pending_limit: int = 500, logger=None):
        self._emit = emit
        self._pending_limit = pending_limit
        self._lock = threading.Lock()
        self._subscribers: Dict[str, _Subscriber] = {}
        self.logger = logger or logging.getLogger(__name__)

    def init_app(self, app, emit: Emitter) -> None:
        with self._lock:
            self._emit = emit
            self._pending_limit = int(app.config.get('BROADCAST_PENDING_LIMIT', 500))
            self._subscribers.clear()
        self.logger = app.logger

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def connect(self, sid: str, load_history: HistoryLoader) -> int:
        """Replay recent history to `sid`, then switch it to live delivery.

        Returns the number of replayed messages.
        """
        with self._lock:
            self._subscribers[sid] = _Subscriber(sid, self._pending_limit)

        try:
            history = list(load_history())
        except Exception as exc:
            self.logger.error(f"[replay-failed] sid={sid} error={exc}")
            history = []

        with self._lock:
            sub = self._subscribers.get(sid)
            if sub is None:
                # Disconnected while history was loading
                return 0
            for message in history:
                self._deliver(sub, message)
                sub.replayed_ids.add(message.id)
            for message in sorted(sub.pending, key=lambda m: m.id):
                if message.id not in sub.replayed_ids:
                    self._deliver(sub, message)
            sub.pending.clear()
            sub.live = True

        self.logger.info(f"[replay] sid={sid} messages={len(history)}")
        return len(history)

    def disconnect(self, sid: str) -> None:
        with self._lock:
            self._subscribers.pop(sid, None)

    def publish(self, message: ChatMessage) -> int:
        """Send `message` to every subscriber; returns how many got it live."""
        delivered = 0
        with self._lock:
            for sub in self._subscribers.values():
                if not sub.live:
                    sub.pending.append(message)
                    continue
                if message.id in sub.replayed_ids:
                    continue
                if self._deliver(sub, message):
                    delivered += 1
        return delivered

    def _deliver(self, sub: _Subscriber, message: ChatMessage) -> bool:
        if self._emit is None:
            return False
        try:
            self._emit(CHAT_EVENT, message.to_dict(), sub.sid)
            return True
        except Exception as exc:
            self.logger.warning(f"[broadcast-failed] sid={sub.sid} message={message.id} error={exc}")
            return False
