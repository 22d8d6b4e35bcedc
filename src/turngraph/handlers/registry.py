from __future__ import annotations

from ..events import ParsedStreamEvent
from .base import EventHandler
from .content import ContentEventHandler
from .control import ControlEventHandler
from .diff import DiffEventHandler
from .thought import ThoughtEventHandler
from .tool_call import ToolCallEventHandler
from .usage import UsageEventHandler


class EventHandlerRegistry:
    """Ordered collection of handlers; the first that can handle an event wins."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def register(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def get_handler(self, event: ParsedStreamEvent) -> EventHandler | None:
        for handler in self._handlers:
            if handler.can_handle(event):
                return handler
        return None

    def get_handlers(self, event: ParsedStreamEvent) -> list[EventHandler]:
        return [h for h in self._handlers if h.can_handle(event)]

    @property
    def event_types(self) -> set[str]:
        return {h.event_type for h in self._handlers}

    @property
    def handler_count(self) -> int:
        return len(self._handlers)


def create_default_handler_registry() -> EventHandlerRegistry:
    registry = EventHandlerRegistry()
    registry.register(ContentEventHandler())
    registry.register(ThoughtEventHandler())
    registry.register(ToolCallEventHandler())
    registry.register(DiffEventHandler())
    registry.register(UsageEventHandler())
    registry.register(ControlEventHandler())
    return registry
