from __future__ import annotations

from ..events import EventType, ParsedStreamEvent
from ..graph import queries
from .base import HandlerContext, HandlerResult, TurnState

PREVIEW_THRESHOLD = 500
PREVIEW_CHARS = 1000


def preview_of(text: str) -> str:
    return text[-PREVIEW_CHARS:]


class ContentEventHandler:
    """Accumulate assistant text; checkpoint a preview every 500 characters."""

    event_type = EventType.CONTENT.value

    def can_handle(self, event: ParsedStreamEvent) -> bool:
        return event.event_type() == EventType.CONTENT and event.role == "assistant"

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        text = event.content or ""
        if not text:
            return HandlerResult(handled=True, action="content_accumulated")

        if turn.last_block_type != "content":
            turn.content_block_index += 1
            turn.last_block_type = "content"
        turn.assistant_content += text

        if len(turn.assistant_content) - turn.preview_checkpoint >= PREVIEW_THRESHOLD:
            context.graph_client.query(
                queries.UPDATE_PREVIEW,
                {"turn_id": turn.turn_id, "preview": preview_of(turn.assistant_content)},
            )
            turn.preview_checkpoint = len(turn.assistant_content)

        return HandlerResult(
            handled=True,
            action="content_accumulated",
            extra={"length": len(turn.assistant_content)},
        )
