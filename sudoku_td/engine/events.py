from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque

from sudoku_td.common.types import EventType

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@dataclass
class GameEvent:
    kind: EventType
    payload: Any
    timestamp_ms: int


class EventBus:
    """Synchronous publish/subscribe channel shared by the game components.

    Handlers run inline on ``publish`` in subscription order, so every mutation
    a handler performs happens inside the caller's tick. When ``backlog`` is
    positive the bus also keeps the most recent events for clients to drain.
    """

    def __init__(self, backlog: int = 0) -> None:
        self._handlers: dict[EventType, list[Handler]] = {}
        self._recent: Deque[GameEvent] | None = deque(maxlen=backlog) if backlog > 0 else None

    def subscribe(self, kind: EventType, handler: Handler) -> Callable[[], None]:
        self._handlers.setdefault(kind, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, kind: EventType, payload: Any = None) -> None:
        if self._recent is not None:
            self._recent.append(GameEvent(kind, payload, int(time.time() * 1000)))
        for handler in list(self._handlers.get(kind, [])):
            handler(payload)

    def status(self, message: str) -> None:
        logger.debug("status: %s", message)
        self.publish(EventType.STATUS_MESSAGE, message)

    def drain(self) -> list[GameEvent]:
        """Return and forget the recorded events."""
        if self._recent is None:
            return []
        events = list(self._recent)
        self._recent.clear()
        return events

    def clear_all(self) -> None:
        self._handlers.clear()
