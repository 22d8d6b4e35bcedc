from __future__ import annotations

from ..bitemporal import OPEN_END
from ..events import EventType, ParsedStreamEvent, new_id
from ..graph import queries
from .base import HandlerContext, HandlerResult, ReasoningBlock, TurnState


class ThoughtEventHandler:
    """Persist each reasoning block as its own node.

    The block stays in ``pending_reasoning_ids`` until the next tool call links
    it with a ``TRIGGERS`` edge.
    """

    event_type = EventType.THOUGHT.value

    def can_handle(self, event: ParsedStreamEvent) -> bool:
        return event.event_type() == EventType.THOUGHT

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        reasoning_id = new_id()
        content = event.thought or ""
        now = context.clock.now_ms()
        context.graph_client.query(
            queries.CREATE_REASONING,
            {
                "turn_id": turn.turn_id,
                "session_id": turn.session_id,
                "reasoning_id": reasoning_id,
                "content": content,
                "sequence_index": turn.sequence_index,
                "content_block_index": turn.content_block_index + 1,
                "now": now,
                "open_end": OPEN_END,
            },
        )

        turn.reasoning_blocks.append(
            ReasoningBlock(id=reasoning_id, sequence_index=turn.sequence_index, content=content)
        )
        turn.pending_reasoning_ids.append(reasoning_id)
        turn.content_block_index += 1
        turn.sequence_index += 1
        turn.last_block_type = "reasoning"

        context.node_created(
            {
                "type": "reasoning",
                "label": "Reasoning",
                "id": reasoning_id,
                "session_id": turn.session_id,
                "turn_id": turn.turn_id,
                "preview": content[:200],
                "timestamp": now,
            }
        )
        return HandlerResult(handled=True, action="reasoning_created", node_id=reasoning_id)
