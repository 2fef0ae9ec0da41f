"""In-process publish/subscribe channel.

An ``EventBus`` is created per unit of work and handed to the components
that publish on it. Dispatch is synchronous: ``publish`` awaits every
subscriber in subscription order, and a subscriber exception propagates to
the publisher.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT")
Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[EventT], handler: Callable[[EventT], Awaitable[None]]) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[EventT], handler: Callable[[EventT], Awaitable[None]]) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_type: type) -> list[Handler]:
        return list(self._handlers.get(event_type, ()))

    async def publish(self, event: object) -> int:
        """Deliver ``event`` to its subscribers and return how many ran."""
        handlers = self.handlers_for(type(event))
        if not handlers:
            logger.warning("No subscribers for %s", type(event).__name__)
            return 0
        for handler in handlers:
            await handler(event)
        return len(handlers)
