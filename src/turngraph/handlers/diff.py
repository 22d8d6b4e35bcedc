from __future__ import annotations

from ..bitemporal import OPEN_END
from ..events import EventType, ParsedStreamEvent, new_id
from ..graph import queries
from .base import HandlerContext, HandlerResult, TurnState
from .tool_call import record_file_touch
from .tools import FILE_ACTIONS


class DiffEventHandler:
    """Attach a file diff to the most recent tool call of the turn."""

    event_type = EventType.DIFF.value

    def can_handle(self, event: ParsedStreamEvent) -> bool:
        return (
            event.event_type() == EventType.DIFF
            and event.diff is not None
            and bool(event.diff.file)
        )

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        diff = event.diff
        if diff is None or not diff.file:
            return HandlerResult(handled=False, action="diff_missing")
        path = diff.file
        hunk = diff.hunk

        if turn.tool_calls:
            target = turn.tool_calls[-1]
            action = FILE_ACTIONS.get(target.tool_type, "edit")
            node_id = record_file_touch(target, path, action, turn, context, hunk=hunk)
            return HandlerResult(
                handled=True,
                action="diff_applied",
                node_id=node_id,
                extra={"tool_call_id": target.id, "file_path": path},
            )

        # No tool call to attribute it to: hang the touch off the turn itself
        file_touch_id = new_id()
        now = context.clock.now_ms()
        context.graph_client.query(
            queries.RECORD_TURN_FILE,
            {
                "turn_id": turn.turn_id,
                "session_id": turn.session_id,
                "file_touch_id": file_touch_id,
                "file_path": path,
                "file_action": "edit",
                "sequence_index": turn.sequence_index,
                "hunk": hunk,
                "now": now,
                "open_end": OPEN_END,
            },
        )
        turn.touch_file(path, "edit")
        turn.sequence_index += 1
        context.node_created(
            {
                "type": "observation",
                "label": "FileTouch",
                "id": file_touch_id,
                "session_id": turn.session_id,
                "turn_id": turn.turn_id,
                "file_path": path,
                "action": "edit",
                "timestamp": now,
            }
        )
        return HandlerResult(
            handled=True, action="diff_applied", node_id=file_touch_id, extra={"file_path": path}
        )
