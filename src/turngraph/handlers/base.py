from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from ..clock import SystemTimeProvider, TimeProvider
from ..events import ParsedStreamEvent
from ..graph.client import GraphClient


@dataclass
class ReasoningBlock:
    id: str
    sequence_index: int
    content: str


@dataclass
class ToolCallRecord:
    id: str
    call_id: str
    tool_name: str
    tool_type: str
    arguments_json: str
    sequence_index: int
    triggering_reasoning_ids: list[str] = field(default_factory=list)
    file_path: str | None = None
    file_action: str | None = None
    # stream position; later fragments may carry only this
    index: int | None = None


@dataclass
class FileTouch:
    action: str
    last_sequence_index: int


@dataclass
class TurnState:
    """Mutable accumulator for one in-flight turn.

    Only handlers mutate it, and only one consumer touches a given turn at a
    time; there is no internal locking.
    """

    turn_id: str
    session_id: str
    created_at: int
    user_content: str = ""
    assistant_content: str = ""
    reasoning_blocks: list[ReasoningBlock] = field(default_factory=list)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    files_touched: dict[str, FileTouch] = field(default_factory=dict)
    pending_reasoning_ids: list[str] = field(default_factory=list)
    tool_calls_count: int = 0
    content_block_index: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    sequence_index: int = 0
    is_finalized: bool = False
    last_block_type: str | None = None
    preview_checkpoint: int = 0

    def touch_file(self, path: str, action: str) -> None:
        self.files_touched[path] = FileTouch(action=action, last_sequence_index=self.sequence_index)

    def find_tool_call(self, *, call_id: str | None, index: int | None) -> ToolCallRecord | None:
        if call_id:
            for call in reversed(self.tool_calls):
                if call.call_id == call_id:
                    return call
            return None
        if index is not None:
            for call in reversed(self.tool_calls):
                if call.index == index:
                    return call
        return None


NodeCreatedFn = Callable[[dict[str, Any]], None]


def _ignore_node_created(_: dict[str, Any]) -> None:
    return None


@dataclass
class HandlerContext:
    session_id: str
    turn_id: str
    graph_client: GraphClient
    logger: Any = field(default_factory=lambda: structlog.get_logger("turngraph.handlers"))
    emit_node_created: NodeCreatedFn = _ignore_node_created
    clock: TimeProvider = field(default_factory=SystemTimeProvider)

    def node_created(self, payload: dict[str, Any]) -> None:
        """Best-effort side-channel notification; never fails the handler."""
        try:
            self.emit_node_created(payload)
        except Exception as exc:
            self.logger.warning(
                "node_created_notify_failed",
                node_type=payload.get("type"),
                node_id=payload.get("id"),
                error=str(exc),
            )


@dataclass
class HandlerResult:
    handled: bool
    action: str
    node_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class EventHandler(Protocol):
    event_type: str

    def can_handle(self, event: ParsedStreamEvent) -> bool: ...

    def handle(
        self, event: ParsedStreamEvent, turn: TurnState, context: HandlerContext
    ) -> HandlerResult: ...
