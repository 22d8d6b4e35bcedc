from __future__ import annotations

from typing import Any

from ..errors import ParseError
from ..events import EventType, StreamDelta, ToolCallDelta, Usage
from ._common import optional_int, optional_object, optional_str, require_object, token_count

PROVIDER = "openai"


def parse(payload: Any) -> StreamDelta | None:
    """Normalize one Chat Completions stream chunk.

    Usage arrives on the final chunk when ``stream_options.include_usage`` is set;
    otherwise ``choices[0].delta`` carries content or a tool-call fragment.
    """

    p = require_object(payload, PROVIDER)

    usage = optional_object(p, "usage", PROVIDER)
    if usage is not None:
        u = Usage(
            input=token_count(usage, "prompt_tokens", PROVIDER),
            output=token_count(usage, "completion_tokens", PROVIDER),
        )
        if u.input is not None or u.output is not None:
            return StreamDelta(type=EventType.USAGE, usage=u)

    choices = p.get("choices")
    if choices is None:
        return None
    if not isinstance(choices, list):
        raise ParseError("openai field 'choices' must be a list", provider=PROVIDER)
    if not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        raise ParseError("openai choice must be an object", provider=PROVIDER)

    delta = optional_object(choice, "delta", PROVIDER)
    if delta is not None:
        content = delta.get("content")
        if isinstance(content, str) and content:
            return StreamDelta(
                type=EventType.CONTENT,
                role=optional_str(delta, "role") or "assistant",
                content=content,
            )

        tool_calls = delta.get("tool_calls")
        if isinstance(tool_calls, list) and tool_calls:
            call = tool_calls[0]
            if not isinstance(call, dict):
                raise ParseError("openai tool call must be an object", provider=PROVIDER)
            fn = optional_object(call, "function", PROVIDER)
            args = fn.get("arguments") if fn is not None else None
            return StreamDelta(
                type=EventType.TOOL_CALL,
                tool_call=ToolCallDelta(
                    index=optional_int(call, "index"),
                    id=optional_str(call, "id"),
                    name=optional_str(fn, "name"),
                    arguments_delta=args if isinstance(args, str) else None,
                ),
            )

    finish = optional_str(choice, "finish_reason")
    if finish:
        return StreamDelta(type=EventType.STOP, stop_reason=finish)

    return None
