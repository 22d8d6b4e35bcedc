"""Claude Code ``--output-format stream-json`` lines.

``assistant`` lines wrap an API message whose ``content`` is a list of blocks;
``parse_all`` yields one delta per block in message order. ``result`` closes
the run with usage and cost.
"""

from __future__ import annotations

from typing import Any

from ..codec import to_text
from ..errors import ParseError
from ..events import EventType, SessionRef, StreamDelta, ToolCallDelta, Usage
from ._common import optional_object, optional_str, require_object, token_count

PROVIDER = "claude_code"


def parse(payload: Any) -> StreamDelta | None:
    """First delta of the line, for callers that take one delta per event."""
    deltas = parse_all(payload)
    return deltas[0] if deltas else None


def parse_all(payload: Any) -> list[StreamDelta]:
    p = require_object(payload, PROVIDER)
    kind = p.get("type")
    session_id = optional_str(p, "session_id")
    session = SessionRef(id=session_id) if session_id else None

    if kind == "assistant":
        message = optional_object(p, "message", PROVIDER)
        if message is None:
            return []
        blocks = message.get("content")
        if isinstance(blocks, str):
            if not blocks:
                return []
            return [
                StreamDelta(
                    type=EventType.CONTENT, role="assistant", content=blocks, session=session
                )
            ]
        if not isinstance(blocks, list):
            raise ParseError("claude_code message content must be a list", provider=PROVIDER)
        out: list[StreamDelta] = []
        for block in blocks:
            delta = _parse_block(block, session)
            if delta is not None:
                out.append(delta)
        return out

    if kind == "result":
        usage = optional_object(p, "usage", PROVIDER)
        if usage is None:
            return []
        delta = StreamDelta(
            type=EventType.USAGE,
            usage=Usage(
                input=token_count(usage, "input_tokens", PROVIDER),
                output=token_count(usage, "output_tokens", PROVIDER),
                cache_read=token_count(usage, "cache_read_input_tokens", PROVIDER),
                cache_write=token_count(usage, "cache_creation_input_tokens", PROVIDER),
            ),
            stop_reason=optional_str(p, "subtype"),
            session=session,
        )
        cost = p.get("total_cost_usd")
        if isinstance(cost, int | float) and not isinstance(cost, bool):
            delta.cost = float(cost)
        return [delta]

    return []


def _parse_block(block: Any, session: SessionRef | None) -> StreamDelta | None:
    if not isinstance(block, dict):
        raise ParseError("claude_code content block must be an object", provider=PROVIDER)
    btype = block.get("type")
    if btype == "thinking":
        thinking = optional_str(block, "thinking")
        if thinking is None:
            return None
        return StreamDelta(type=EventType.THOUGHT, thought=thinking, session=session)
    if btype == "text":
        text = optional_str(block, "text")
        if text is None:
            return None
        return StreamDelta(type=EventType.CONTENT, role="assistant", content=text, session=session)
    if btype == "tool_use":
        tool_input = block.get("input")
        # no index: blocks carry whole calls, matched by id only
        return StreamDelta(
            type=EventType.TOOL_CALL,
            tool_call=ToolCallDelta(
                id=optional_str(block, "id"),
                name=optional_str(block, "name") or "",
                arguments_delta=to_text(tool_input) if isinstance(tool_input, dict) else "{}",
            ),
            session=session,
        )
    return None
