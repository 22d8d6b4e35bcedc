"""OpenCode CLI ``--format json`` lines.

Event types: ``step_start``, ``text``, ``tool_use``, ``step_finish``. Each
carries ``sessionID`` and a ``part`` object; ``step_finish`` parts hold token
counts, cost and the git snapshot taken after the step.
"""

from __future__ import annotations

from typing import Any

from ..codec import to_text
from ..events import EventType, SessionRef, StreamDelta, Timing, ToolCallDelta, Usage
from ._common import optional_int, optional_object, optional_str, require_object, token_count

PROVIDER = "opencode"


def _session_ref(p: dict[str, Any], part: dict[str, Any]) -> SessionRef | None:
    ref = SessionRef(
        id=optional_str(p, "sessionID"),
        message_id=optional_str(part, "messageID"),
        part_id=optional_str(part, "id"),
    )
    if ref.id or ref.message_id or ref.part_id:
        return ref
    return None


def parse(payload: Any) -> StreamDelta | None:
    p = require_object(payload, PROVIDER)
    kind = p.get("type")
    part = optional_object(p, "part", PROVIDER)
    if part is None:
        return None

    if kind == "text":
        text = optional_str(part, "text")
        if text is None:
            return None
        delta = StreamDelta(type=EventType.CONTENT, role="assistant", content=text)
        time_info = optional_object(part, "time", PROVIDER)
        if time_info is not None:
            delta.timing = Timing(
                start=optional_int(time_info, "start"), end=optional_int(time_info, "end")
            )
        delta.session = _session_ref(p, part)
        return delta

    if kind == "tool_use":
        state = optional_object(part, "state", PROVIDER)
        tool_input = optional_object(state, "input", PROVIDER) if state is not None else None
        return StreamDelta(
            type=EventType.TOOL_CALL,
            tool_call=ToolCallDelta(
                id=optional_str(part, "callID"),
                name=optional_str(part, "tool") or "",
                arguments_delta=to_text(tool_input) if tool_input is not None else "{}",
            ),
            session=_session_ref(p, part),
        )

    if kind == "step_finish":
        tokens = optional_object(part, "tokens", PROVIDER)
        if tokens is None:
            return None
        input_tokens = token_count(tokens, "input", PROVIDER) or 0
        output_tokens = token_count(tokens, "output", PROVIDER) or 0
        if input_tokens == 0 and output_tokens == 0:
            return None
        cache = optional_object(tokens, "cache", PROVIDER)
        delta = StreamDelta(
            type=EventType.USAGE,
            usage=Usage(
                input=input_tokens,
                output=output_tokens,
                reasoning=token_count(tokens, "reasoning", PROVIDER) or 0,
                cache_read=token_count(cache, "read", PROVIDER),
                cache_write=token_count(cache, "write", PROVIDER),
            ),
            stop_reason=optional_str(part, "reason"),
            git_snapshot=optional_str(part, "snapshot"),
            session=_session_ref(p, part),
        )
        cost = part.get("cost")
        if isinstance(cost, int | float) and not isinstance(cost, bool):
            delta.cost = float(cost)
        return delta

    # step_start and anything newer carry nothing actionable
    return None
