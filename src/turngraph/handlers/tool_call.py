from __future__ import annotations

from ..bitemporal import OPEN_END
from ..codec import try_loads
from ..events import EventType, ParsedStreamEvent, ToolCallDelta, new_id
from ..graph import queries
from .base import HandlerContext, HandlerResult, ToolCallRecord, TurnState
from .tools import FILE_ACTIONS, file_path_from_args, infer_tool_type


def _merge_arguments(accumulated: str, fragment: str) -> str:
    # Agent CLIs resend whole argument objects as the call progresses
    if isinstance(try_loads(accumulated), dict) and isinstance(try_loads(fragment), dict):
        return fragment
    return accumulated + fragment


class ToolCallEventHandler:
    """Assemble streamed tool calls.

    The first fragment of a call creates the ``ToolCall`` node and links any
    pending reasoning to it; later fragments only extend ``arguments_json``.
    Calls are matched by provider call id, falling back to stream index.
    """

    event_type = EventType.TOOL_CALL.value

    def can_handle(self, event: ParsedStreamEvent) -> bool:
        return event.event_type() == EventType.TOOL_CALL and event.tool_call is not None

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        fragment = event.tool_call
        if fragment is None:
            return HandlerResult(handled=False, action="toolcall_missing")
        existing = turn.find_tool_call(call_id=fragment.id, index=fragment.index)
        if existing is not None:
            if fragment.arguments_delta:
                existing.arguments_json = _merge_arguments(
                    existing.arguments_json, fragment.arguments_delta
                )
            self._resolve_file(existing, turn, context)
            return HandlerResult(handled=True, action="toolcall_updated", node_id=existing.id)
        return self._create(fragment, turn, context)

    def _create(
        self, fragment: ToolCallDelta, turn: TurnState, context: HandlerContext
    ) -> HandlerResult:
        tool_name = fragment.name or "unknown"
        node_id = new_id()
        if fragment.id:
            call_id = fragment.id
        elif fragment.index is not None:
            call_id = f"{turn.turn_id}:{fragment.index}"
        else:
            call_id = node_id
        call = ToolCallRecord(
            id=node_id,
            call_id=call_id,
            tool_name=tool_name,
            tool_type=infer_tool_type(fragment.name),
            arguments_json=fragment.arguments_delta or "",
            sequence_index=turn.sequence_index,
            triggering_reasoning_ids=list(turn.pending_reasoning_ids),
            index=fragment.index,
        )
        now = context.clock.now_ms()
        context.graph_client.query(
            queries.CREATE_TOOL_CALL,
            {
                "turn_id": turn.turn_id,
                "session_id": turn.session_id,
                "tool_call_id": call.id,
                "call_id": call.call_id,
                "tool_name": call.tool_name,
                "tool_type": call.tool_type,
                "arguments": call.arguments_json,
                "sequence_index": call.sequence_index,
                "now": now,
                "open_end": OPEN_END,
            },
        )
        if call.triggering_reasoning_ids:
            context.graph_client.query(
                queries.LINK_REASONING_TRIGGERS,
                {"tool_call_id": call.id, "reasoning_ids": list(call.triggering_reasoning_ids)},
            )

        turn.tool_calls.append(call)
        turn.pending_reasoning_ids.clear()
        turn.tool_calls_count += 1
        turn.content_block_index += 1
        turn.sequence_index += 1
        turn.last_block_type = "tool_call"

        context.node_created(
            {
                "type": "toolcall",
                "label": "ToolCall",
                "id": call.id,
                "session_id": turn.session_id,
                "turn_id": turn.turn_id,
                "tool_name": call.tool_name,
                "tool_type": call.tool_type,
                "timestamp": now,
            }
        )
        self._resolve_file(call, turn, context)
        return HandlerResult(
            handled=True,
            action="toolcall_created",
            node_id=call.id,
            extra={"tool_type": call.tool_type, "linked_reasoning": call.triggering_reasoning_ids},
        )

    def _resolve_file(self, call: ToolCallRecord, turn: TurnState, context: HandlerContext) -> None:
        if call.file_path is not None:
            return
        action = FILE_ACTIONS.get(call.tool_type)
        if action is None:
            return
        # Unparseable or partial JSON just leaves the path unresolved for now
        path = file_path_from_args(try_loads(call.arguments_json))
        if path is None:
            return
        record_file_touch(call, path, action, turn, context)


def record_file_touch(
    call: ToolCallRecord,
    path: str,
    action: str,
    turn: TurnState,
    context: HandlerContext,
    *,
    hunk: str | None = None,
) -> str:
    """Attach ``path`` to ``call`` and persist a FileTouch node under it."""
    file_touch_id = new_id()
    now = context.clock.now_ms()
    context.graph_client.query(
        queries.RECORD_TOOL_FILE,
        {
            "tool_call_id": call.id,
            "file_touch_id": file_touch_id,
            "session_id": turn.session_id,
            "turn_id": turn.turn_id,
            "file_path": path,
            "file_action": action,
            "sequence_index": turn.sequence_index,
            "hunk": hunk,
            "now": now,
            "open_end": OPEN_END,
        },
    )
    call.file_path = path
    call.file_action = action
    turn.touch_file(path, action)
    turn.sequence_index += 1
    context.node_created(
        {
            "type": "observation",
            "label": "FileTouch",
            "id": file_touch_id,
            "session_id": turn.session_id,
            "turn_id": turn.turn_id,
            "file_path": path,
            "action": action,
            "timestamp": now,
        }
    )
    return file_touch_id
