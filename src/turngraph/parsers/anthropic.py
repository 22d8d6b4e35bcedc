from __future__ import annotations

from typing import Any

from ..events import EventType, StreamDelta, ToolCallDelta, Usage
from ._common import optional_int, optional_object, optional_str, require_object, token_count

PROVIDER = "anthropic"


def parse(payload: Any) -> StreamDelta | None:
    p = require_object(payload, PROVIDER)
    kind = p.get("type")

    if kind == "message_start":
        message = optional_object(p, "message", PROVIDER)
        usage = optional_object(message, "usage", PROVIDER) if message is not None else None
        input_tokens = token_count(usage, "input_tokens", PROVIDER)
        if input_tokens is None:
            return None
        return StreamDelta(type=EventType.USAGE, usage=Usage(input=input_tokens))

    if kind == "content_block_start":
        block = optional_object(p, "content_block", PROVIDER)
        if block is not None and block.get("type") == "tool_use":
            return StreamDelta(
                type=EventType.TOOL_CALL,
                tool_call=ToolCallDelta(
                    index=optional_int(p, "index"),
                    id=optional_str(block, "id"),
                    name=optional_str(block, "name"),
                    arguments_delta="",
                ),
            )
        return None

    if kind == "content_block_delta":
        delta = optional_object(p, "delta", PROVIDER)
        if delta is None:
            return None
        dtype = delta.get("type")
        if dtype == "text_delta":
            text = optional_str(delta, "text")
            if text is None:
                return None
            return StreamDelta(type=EventType.CONTENT, role="assistant", content=text)
        if dtype == "thinking_delta":
            thinking = optional_str(delta, "thinking")
            if thinking is None:
                return None
            return StreamDelta(type=EventType.THOUGHT, thought=thinking)
        if dtype == "input_json_delta":
            partial = delta.get("partial_json")
            return StreamDelta(
                type=EventType.TOOL_CALL,
                tool_call=ToolCallDelta(
                    index=optional_int(p, "index"),
                    arguments_delta=partial if isinstance(partial, str) else "",
                ),
            )
        return None

    if kind == "message_delta":
        usage = optional_object(p, "usage", PROVIDER)
        delta = optional_object(p, "delta", PROVIDER)
        out = StreamDelta()
        output_tokens = token_count(usage, "output_tokens", PROVIDER)
        input_tokens = token_count(usage, "input_tokens", PROVIDER)
        if output_tokens is not None or input_tokens is not None:
            out.usage = Usage(input=input_tokens, output=output_tokens)
            out.type = EventType.USAGE
        stop = optional_str(delta, "stop_reason")
        if stop:
            out.stop_reason = stop
            if out.type is None:
                out.type = EventType.STOP
        return None if out.is_empty() else out

    return None
