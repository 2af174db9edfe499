"""Fan-out of domain events to subscribed handlers."""

import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog

logger = structlog.get_logger()

Handler = Callable[[Any], Awaitable[None] | None]


class EventDispatcher:
    """Delivers events to handlers subscribed by event type.

    Handler failures are logged and never propagate: by the time events are
    dispatched the originating transaction has already committed.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    async def dispatch(self, events: Iterable[Any]) -> None:
        for event in events:
            event_type = getattr(event, "type", type(event).__name__)
            for handler in list(self._handlers.get(event_type, ())):
                try:
                    result = handler(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception(
                        "event_dispatch_failed",
                        event_type=event_type,
                        handler=getattr(handler, "__qualname__", repr(handler)),
                    )
