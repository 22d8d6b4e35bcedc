from __future__ import annotations

from ..events import EventType, ParsedStreamEvent
from .base import HandlerContext, HandlerResult, TurnState


class ControlEventHandler:
    event_type = EventType.CONTROL.value

    def can_handle(self, event: ParsedStreamEvent) -> bool:
        return event.event_type() == EventType.CONTROL

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        context.logger.debug(
            "control_event",
            session_id=turn.session_id,
            turn_id=turn.turn_id,
            event_id=event.event_id,
            stop_reason=event.stop_reason,
        )
        return HandlerResult(handled=True, action="control_acknowledged")
