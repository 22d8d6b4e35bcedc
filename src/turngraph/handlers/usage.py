from __future__ import annotations

from ..bitemporal import OPEN_END
from ..events import EventType, ParsedStreamEvent
from ..graph import queries
from .base import HandlerContext, HandlerResult, TurnState
from .content import preview_of


class UsageEventHandler:
    """Record token usage and finalize the turn, exactly once."""

    event_type = EventType.USAGE.value

    def can_handle(self, event: ParsedStreamEvent) -> bool:
        return event.event_type() == EventType.USAGE

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        if turn.is_finalized:
            context.logger.debug(
                "usage_after_finalize", session_id=turn.session_id, turn_id=turn.turn_id
            )
            return HandlerResult(handled=False, action="already_finalized", node_id=turn.turn_id)

        input_tokens = turn.input_tokens
        output_tokens = turn.output_tokens
        if event.usage is not None:
            if event.usage.input is not None:
                input_tokens = event.usage.input
            if event.usage.output is not None:
                output_tokens = event.usage.output

        context.graph_client.query(
            queries.FINALIZE_TURN,
            {
                "turn_id": turn.turn_id,
                "content": turn.assistant_content,
                "preview": preview_of(turn.assistant_content),
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "tool_calls_count": turn.tool_calls_count,
                "files_touched": sorted(turn.files_touched),
                "content_block_index": turn.content_block_index,
                "now": context.clock.now_ms(),
                "open_end": OPEN_END,
                "tool_calls": [
                    {"id": call.id, "arguments": call.arguments_json} for call in turn.tool_calls
                ],
            },
        )
        turn.input_tokens = input_tokens
        turn.output_tokens = output_tokens
        turn.is_finalized = True

        context.logger.info(
            "turn_finalized",
            session_id=turn.session_id,
            turn_id=turn.turn_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            tool_calls=turn.tool_calls_count,
            reasoning_blocks=len(turn.reasoning_blocks),
        )
        return HandlerResult(
            handled=True,
            action="turn_finalized",
            node_id=turn.turn_id,
            extra={"input_tokens": input_tokens, "output_tokens": output_tokens},
        )
