from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .arena import SessionArena
from .clock import TimeProvider
from .errors import ParseError
from .events import EventType, ParsedStreamEvent, RawStreamEvent, StreamDelta, Usage
from .extract import TagExtractor
from .logs import get_logger
from .parsers import parse_all
from .redact import Redactor

log = get_logger("ingestion")

PublishFn = Callable[[str, ParsedStreamEvent], None]


@dataclass
class _StreamState:
    extractor: TagExtractor = field(default_factory=TagExtractor)
    # counts seen so far for the in-flight message (Anthropic splits them)
    pending_usage: Usage | None = None


class IngestionProcessor:
    """Turn raw provider envelopes into redacted ``ParsedStreamEvent``s.

    Steps per event: validate the envelope, parse the payload with the
    provider's parser, split ``<thinking>`` blocks out of content, redact
    content and thought. ``<thinking>`` tags may span chunks, so extractor
    state is kept per session.

    Usage counts that arrive without an output count are held back and merged
    into the next usage event of the session, so a turn is finalized only once
    the full usage is known.
    """

    def __init__(
        self,
        *,
        redactor: Redactor | None = None,
        publish: PublishFn | None = None,
        session_ttl_s: int = 1800,
        clock: TimeProvider | None = None,
    ) -> None:
        self.redactor = redactor or Redactor()
        self.publish = publish
        self._streams: SessionArena[_StreamState] = SessionArena(
            lambda _sid: _StreamState(), ttl_s=session_ttl_s, clock=clock
        )

    def validate(self, raw: RawStreamEvent | Mapping[str, Any]) -> RawStreamEvent:
        if isinstance(raw, RawStreamEvent):
            return raw
        try:
            return RawStreamEvent.model_validate(raw)
        except PydanticValidationError as exc:
            event_id = raw.get("event_id") if isinstance(raw, Mapping) else None
            raise ParseError(
                f"invalid raw event: {exc.error_count()} validation error(s)",
                provider=str(raw.get("provider")) if isinstance(raw, Mapping) else None,
                event_id=event_id if isinstance(event_id, str) else None,
            ) from exc

    def process(self, raw: RawStreamEvent | Mapping[str, Any]) -> list[ParsedStreamEvent]:
        """Return zero or more parsed events for one raw event."""
        envelope = self.validate(raw)
        session_id = envelope.session_id
        try:
            parsed = parse_all(envelope.provider, envelope.payload)
        except ParseError as exc:
            if exc.event_id is None:
                exc.event_id = envelope.event_id
            raise
        if not parsed:
            log.debug("event_ignored", event_id=envelope.event_id, provider=envelope.provider.value)
            return []

        state = self._streams.get_or_create(session_id)
        deltas = [piece for delta in parsed for piece in self._split_thinking(delta, state)]
        deltas = [d for d in (self._hold_usage(d, state) for d in deltas) if d is not None]

        out: list[ParsedStreamEvent] = []
        for d in deltas:
            if d.content:
                d.content = self.redactor.redact(d.content)
            if d.thought:
                d.thought = self.redactor.redact(d.thought)
            event = ParsedStreamEvent(
                **d.model_dump(exclude_none=True),
                original_event_id=envelope.event_id,
                timestamp=envelope.ingest_timestamp,
                session_id=session_id,
                provider=envelope.provider,
            )
            out.append(event)
            if self.publish is not None:
                self.publish(session_id, event)
        return out

    def active_sessions(self) -> list[str]:
        return self._streams.session_ids()

    def end_session(self, session_id: str) -> list[ParsedStreamEvent]:
        """Flush held-back tag fragments for a session whose stream ended."""
        state = self._streams.get_or_create(session_id)
        self._streams.discard(session_id)
        rest = state.extractor.flush()
        out: list[ParsedStreamEvent] = []
        if rest.get("content"):
            out.append(
                ParsedStreamEvent(
                    type=EventType.CONTENT,
                    role="assistant",
                    content=self.redactor.redact(rest["content"]),
                    session_id=session_id,
                )
            )
        if rest.get("thought"):
            out.append(
                ParsedStreamEvent(
                    type=EventType.THOUGHT,
                    thought=self.redactor.redact(rest["thought"]),
                    session_id=session_id,
                )
            )
        return out

    def _split_thinking(self, delta: StreamDelta, state: _StreamState) -> list[StreamDelta]:
        if not delta.content:
            return [delta]
        out: list[StreamDelta] = []
        carried = False
        for kind, text in state.extractor.segments(delta.content):
            if kind == "content" and not carried:
                # the first content piece keeps the delta's other fields
                out.append(delta.model_copy(update={"content": text}))
                carried = True
            elif kind == "content":
                out.append(
                    StreamDelta(
                        type=EventType.CONTENT,
                        role=delta.role,
                        content=text,
                        session=delta.session,
                        timing=delta.timing,
                    )
                )
            else:
                out.append(
                    StreamDelta(
                        type=EventType.THOUGHT,
                        thought=text,
                        session=delta.session,
                        timing=delta.timing,
                    )
                )
        return out

    def _hold_usage(self, delta: StreamDelta, state: _StreamState) -> StreamDelta | None:
        if delta.usage is None:
            return delta
        usage = delta.usage
        if state.pending_usage is not None:
            usage = state.pending_usage.merged(usage)
        if usage.is_complete:
            state.pending_usage = None
            return delta.model_copy(update={"usage": usage})
        state.pending_usage = usage
        if delta.event_type() == EventType.USAGE:
            return None
        # keep the non-usage part (e.g. a stop reason) flowing
        return delta.model_copy(update={"usage": None})
