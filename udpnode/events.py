"""Custom event registry: application message types mapped to handlers.

``off(type)`` deletes the whole entry, so the type reads as never registered.
``off(type, index)`` removes a single handler and keeps the (possibly empty)
list, so callers can still tell the type was registered.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger

from udpnode.errors import InvalidArgumentError

# Handler signature: (envelope, remote) -> None, sync or async.
EventHandler = Callable[..., "Awaitable[None] | None"]


class EventRegistry:
    """Ordered handler lists keyed by event type.  One registry per node."""

    def __init__(self) -> None:
        self._events: dict[str, list[EventHandler]] = {}

    def on(self, event_type: str, handler: EventHandler) -> int:
        """Append *handler* for *event_type*; returns its index in the list."""
        if not event_type or not isinstance(event_type, str):
            raise InvalidArgumentError("Missing argument 'type' when calling on(type, handler).")
        if handler is None:
            raise InvalidArgumentError("Missing argument 'handler' when calling on(type, handler).")
        if not callable(handler):
            raise InvalidArgumentError(
                "Invalid argument 'handler' when calling on(type, handler): must be callable."
            )
        handlers = self._events.setdefault(event_type, [])
        handlers.append(handler)
        logger.debug("[UdpNode/Events] +{} handler #{}", event_type, len(handlers) - 1)
        return len(handlers) - 1

    def off(self, event_type: str, index: int | None = None) -> None:
        """Remove every handler for *event_type*, or only the one at *index*."""
        if not event_type or not isinstance(event_type, str):
            raise InvalidArgumentError("Missing argument 'type' when calling off(type, index).")

        if index is None:
            if self._events.pop(event_type, None) is not None:
                logger.debug("[UdpNode/Events] removed all handlers for {}", event_type)
            return

        handlers = self._events.get(event_type)
        if handlers is None:
            raise InvalidArgumentError(f"No handlers registered for event type {event_type!r}.")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(handlers):
            raise InvalidArgumentError(
                f"Invalid handler index {index!r} for event type {event_type!r} "
                f"({len(handlers)} registered)."
            )
        del handlers[index]
        logger.debug("[UdpNode/Events] removed {} handler #{}", event_type, index)

    def is_registered(self, event_type: str) -> bool:
        """``True`` while an entry exists, even if its handler list is empty."""
        return event_type in self._events

    def handlers(self, event_type: str) -> tuple[EventHandler, ...]:
        """Snapshot of the handlers for *event_type*, safe to iterate while others mutate."""
        return tuple(self._events.get(event_type, ()))

    def snapshot(self) -> dict[str, tuple[EventHandler, ...]]:
        return {name: tuple(handlers) for name, handlers in self._events.items()}

