from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .engine import TurnEngine
from .errors import ParseError
from .events import ParsedStreamEvent, RawStreamEvent
from .handlers.base import HandlerResult
from .ingestion import IngestionProcessor
from .logs import get_logger

log = get_logger("pipeline")


@dataclass
class PipelineStats:
    received: int = 0
    dropped: int = 0
    parsed: int = 0
    handled: int = 0
    actions: dict[str, int] = field(default_factory=dict)

    def record(self, result: HandlerResult) -> None:
        self.parsed += 1
        if result.handled:
            self.handled += 1
        self.actions[result.action] = self.actions.get(result.action, 0) + 1


class Pipeline:
    """Raw provider events in, graph mutations out."""

    def __init__(self, ingestion: IngestionProcessor, engine: TurnEngine) -> None:
        self.ingestion = ingestion
        self.engine = engine

    def process(self, raw: RawStreamEvent | Mapping[str, Any]) -> list[HandlerResult]:
        return self._dispatch(self.ingestion.process(raw))

    def end_session(self, session_id: str) -> list[HandlerResult]:
        """Apply whatever the ingestion side still buffers for ``session_id``."""
        return self._dispatch(self.ingestion.end_session(session_id))

    def run(
        self, raw_events: Iterable[RawStreamEvent | Mapping[str, Any]], *, flush: bool = True
    ) -> PipelineStats:
        """Consume ``raw_events``; malformed ones are logged and dropped.

        With ``flush`` the stream is treated as complete: buffered tag
        fragments of every open session are applied at the end.
        """
        stats = PipelineStats()
        for raw in raw_events:
            stats.received += 1
            try:
                events = self.ingestion.process(raw)
            except ParseError as exc:
                stats.dropped += 1
                log.warning(
                    "event_dropped",
                    event_id=exc.event_id,
                    provider=exc.provider,
                    error=str(exc),
                )
                continue
            for result in self._dispatch(events):
                stats.record(result)
        if flush:
            for session_id in self.ingestion.active_sessions():
                for result in self.end_session(session_id):
                    stats.record(result)
        log.info(
            "pipeline_complete",
            received=stats.received,
            dropped=stats.dropped,
            handled=stats.handled,
        )
        return stats

    def _dispatch(self, events: list[ParsedStreamEvent]) -> list[HandlerResult]:
        return [self.engine.handle(event) for event in events]
