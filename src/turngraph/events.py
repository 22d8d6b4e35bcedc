from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class EventType(str, Enum):
    CONTENT = "content"
    THOUGHT = "thought"
    TOOL_CALL = "tool_call"
    USAGE = "usage"
    DIFF = "diff"
    CONTROL = "control"
    STOP = "stop"


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OPENCODE = "opencode"
    CLAUDE_CODE = "claude_code"


class ToolCallDelta(BaseModel):
    """One streamed fragment of a tool call.

    ``id`` and ``name`` are usually only present on the first fragment;
    ``arguments_delta`` is partial JSON to be concatenated by the consumer.
    """

    index: int | None = None
    id: str | None = None
    name: str | None = None
    arguments_delta: str | None = None


class Usage(BaseModel):
    # None means "not present in this chunk", never zero
    input: NonNegativeInt | None = None
    output: NonNegativeInt | None = None
    reasoning: NonNegativeInt | None = None
    cache_read: NonNegativeInt | None = None
    cache_write: NonNegativeInt | None = None

    @property
    def is_complete(self) -> bool:
        return self.output is not None

    def merged(self, newer: Usage) -> Usage:
        """Overlay counts present in ``newer`` on top of this usage."""
        data = self.model_dump()
        data.update(newer.model_dump(exclude_none=True))
        return Usage(**data)


class Timing(BaseModel):
    start: int | None = None
    end: int | None = None


class SessionRef(BaseModel):
    id: str | None = None
    message_id: str | None = None
    part_id: str | None = None


class DiffDelta(BaseModel):
    file: str | None = None
    hunk: str | None = None


class StreamDelta(BaseModel):
    """Canonical normalized event produced by the provider parsers."""

    model_config = ConfigDict(use_enum_values=False)

    type: EventType | None = None
    role: str | None = None
    content: str | None = None
    thought: str | None = None
    diff: DiffDelta | None = None
    tool_call: ToolCallDelta | None = None
    usage: Usage | None = None
    stop_reason: str | None = None
    timing: Timing | None = None
    session: SessionRef | None = None
    cost: float | None = None
    git_snapshot: str | None = None

    def event_type(self) -> EventType | None:
        """Effective event type: explicit ``type`` wins, else inferred from fields."""
        if self.type is not None:
            return self.type
        if self.thought:
            return EventType.THOUGHT
        if self.tool_call is not None:
            return EventType.TOOL_CALL
        if self.diff is not None:
            return EventType.DIFF
        if self.content:
            return EventType.CONTENT
        if self.usage is not None:
            return EventType.USAGE
        if self.stop_reason:
            return EventType.STOP
        return None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class ParsedStreamEvent(StreamDelta):
    """A ``StreamDelta`` tagged with its envelope, ready for the turn engine."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    original_event_id: str | None = None
    timestamp: str | None = None
    session_id: str | None = None
    provider: Provider | None = None


class RawStreamEvent(BaseModel):
    """Inbound envelope as delivered by the event transport."""

    event_id: str = Field(min_length=1)
    ingest_timestamp: str
    provider: Provider
    payload: dict[str, Any]
    headers: dict[str, str] | None = None

    @property
    def session_id(self) -> str:
        if self.headers and self.headers.get("x-session-id"):
            return self.headers["x-session-id"]
        return self.event_id


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def new_id() -> str:
    return str(uuid4())
