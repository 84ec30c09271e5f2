"""
Event bus.

Synchronous, fire-and-forget publish/subscribe keyed by event name. A handler
that raises is logged and skipped; the remaining handlers still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Events:
    """Event names published by the core and its consumers."""
    NODE_CLICK = "node:click"
    NODE_DBLCLICK = "node:dblclick"
    NODE_CONTEXTMENU = "node:contextmenu"
    NODE_ADD = "node:add"
    NODE_REMOVE = "node:remove"
    NODE_UPDATE = "node:update"
    NODE_SELECT = "node:select"
    NODE_DESELECT = "node:deselect"
    NODE_EXPAND = "node:expand"
    NODE_COLLAPSE = "node:collapse"
    NODE_DRAG_START = "node:drag:start"
    NODE_DRAG_MOVE = "node:drag:move"
    NODE_DRAG_END = "node:drag:end"
    LAYOUT_CHANGE = "layout:change"
    ZOOM_CHANGE = "zoom:change"
    PAN_CHANGE = "pan:change"
    RENDER_BEFORE = "render:before"
    RENDER_AFTER = "render:after"
    HISTORY_CHANGE = "history:change"


class EventBus:
    def __init__(self):
        # dict keys keep subscription order and drop duplicate handlers
        self._events: dict[str, dict[Handler, None]] = {}

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """Subscribe and return a callable that unsubscribes."""
        self._events.setdefault(event, {})[handler] = None
        return lambda: self.off(event, handler)

    def once(self, event: str, handler: Handler) -> Callable[[], None]:
        """Subscribe a handler that is removed after its first call."""
        def wrapper(data: Any = None) -> None:
            self.off(event, wrapper)
            handler(data)

        return self.on(event, wrapper)

    def off(self, event: str, handler: Handler | None = None) -> None:
        """Remove one handler, or every handler of the event when none is given."""
        if handler is None:
            self._events.pop(event, None)
            return
        handlers = self._events.get(event)
        if handlers is None:
            return
        handlers.pop(handler, None)
        if not handlers:
            del self._events[event]

    def emit(self, event: str, data: Any = None) -> None:
        handlers = self._events.get(event)
        if not handlers:
            return
        # snapshot: handlers may unsubscribe while we dispatch
        for handler in list(handlers):
            try:
                handler(data)
            except Exception:
                logger.exception("Error in event handler for %r", event)

    def clear(self) -> None:
        self._events.clear()

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._events.get(event, ()))
        return sum(len(handlers) for handlers in self._events.values())

    def event_names(self) -> list[str]:
        return list(self._events)
