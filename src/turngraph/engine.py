from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .arena import SessionArena
from .bitemporal import OPEN_END
from .clock import SystemTimeProvider, TimeProvider
from .events import EventType, ParsedStreamEvent, new_id
from .graph import queries
from .graph.client import GraphClient
from .graph.session import SessionInitializer
from .handlers.base import HandlerContext, HandlerResult, TurnState
from .handlers.registry import EventHandlerRegistry, create_default_handler_registry
from .logs import get_logger

log = get_logger("engine")

NodeCreatedFn = Callable[[dict[str, Any]], None]


@dataclass
class SessionTimeline:
    """What the engine remembers about one session between events."""

    session_id: str
    ensured: bool = False
    turn: TurnState | None = None
    last_turn_id: str | None = None
    last_vt_start: int = 0


class TurnEngine:
    """Drive the per-session turn lifecycle and dispatch events to handlers.

    A session's first event ensures its ``Session`` node. Any event arriving
    while the session has no open turn starts one: the first turn hangs off the
    session by ``TRIGGERS``, later ones off their predecessor by ``NEXT``, with
    ``vt_start`` kept strictly increasing along the chain. Usage events close
    the turn.

    Events of one session must be fed sequentially; different sessions may be
    processed from different threads.
    """

    def __init__(
        self,
        client: GraphClient,
        *,
        registry: EventHandlerRegistry | None = None,
        initializer: SessionInitializer | None = None,
        clock: TimeProvider | None = None,
        session_ttl_s: int = 1800,
        on_node_created: NodeCreatedFn | None = None,
    ) -> None:
        self.client = client
        self.clock = clock or SystemTimeProvider()
        self.registry = registry or create_default_handler_registry()
        self.initializer = initializer or SessionInitializer(client, clock=self.clock)
        self.on_node_created = on_node_created
        self.sessions: SessionArena[SessionTimeline] = SessionArena(
            SessionTimeline, ttl_s=session_ttl_s, clock=self.clock
        )

    def handle(self, event: ParsedStreamEvent) -> HandlerResult:
        session_id = event.session_id or event.original_event_id or event.event_id
        etype = event.event_type()
        if etype is None or etype == EventType.STOP:
            log.debug(
                "event_unhandled",
                session_id=session_id,
                event_id=event.event_id,
                event_type=etype.value if etype else None,
                stop_reason=event.stop_reason,
            )
            return HandlerResult(handled=False, action="unhandled")

        timeline = self.sessions.get_or_create(session_id)
        self._ensure_session(timeline)
        # A redelivered usage event belongs to the turn it already closed.
        if etype == EventType.USAGE and timeline.turn is not None and timeline.turn.is_finalized:
            turn = timeline.turn
        else:
            turn = self._open_turn(timeline)

        if event.role == "user" and etype == EventType.CONTENT:
            return self._record_user_content(event, turn)

        handler = self.registry.get_handler(event)
        if handler is None:
            log.debug(
                "event_unhandled",
                session_id=session_id,
                event_id=event.event_id,
                event_type=etype.value,
            )
            return HandlerResult(handled=False, action="unhandled")

        context = HandlerContext(
            session_id=session_id,
            turn_id=turn.turn_id,
            graph_client=self.client,
            logger=log.bind(session_id=session_id, turn_id=turn.turn_id),
            emit_node_created=self._emit,
            clock=self.clock,
        )
        return handler.handle(event, turn, context)

    def current_turn(self, session_id: str) -> TurnState | None:
        if session_id not in self.sessions:
            return None
        return self.sessions.get_or_create(session_id).turn

    def evict_idle(self) -> list[str]:
        evicted = self.sessions.evict_expired()
        if evicted:
            log.info("sessions_evicted", count=len(evicted))
        return evicted

    def _ensure_session(self, timeline: SessionTimeline) -> None:
        if timeline.ensured:
            return
        created = self.initializer.ensure_session(timeline.session_id)
        timeline.ensured = True
        if not created and timeline.last_turn_id is None:
            # state was evicted or lives elsewhere; continue the chain from the graph
            rows = self.client.query(queries.LATEST_TURN, {"session_id": timeline.session_id})
            if rows:
                timeline.last_turn_id = rows[0].get("id")
                timeline.last_vt_start = int(rows[0].get("vt_start") or 0)
                log.debug(
                    "turn_chain_recovered",
                    session_id=timeline.session_id,
                    last_turn_id=timeline.last_turn_id,
                )

    def _open_turn(self, timeline: SessionTimeline) -> TurnState:
        if timeline.turn is not None and not timeline.turn.is_finalized:
            return timeline.turn

        now = self.clock.now_ms()
        vt_start = max(now, timeline.last_vt_start + 1)
        turn = TurnState(turn_id=new_id(), session_id=timeline.session_id, created_at=now)
        params = {
            "session_id": timeline.session_id,
            "turn_id": turn.turn_id,
            "user_content": "",
            "vt_start": vt_start,
            "now": now,
            "open_end": OPEN_END,
        }
        if timeline.last_turn_id is None:
            self.client.query(queries.CREATE_FIRST_TURN, params)
        else:
            self.client.query(
                queries.CREATE_NEXT_TURN, {**params, "prev_turn_id": timeline.last_turn_id}
            )

        timeline.turn = turn
        timeline.last_turn_id = turn.turn_id
        timeline.last_vt_start = vt_start
        log.info("turn_started", session_id=timeline.session_id, turn_id=turn.turn_id)
        self._emit(
            {
                "type": "thought",
                "label": "Thought",
                "id": turn.turn_id,
                "session_id": timeline.session_id,
                "timestamp": now,
            }
        )
        return turn

    def _record_user_content(self, event: ParsedStreamEvent, turn: TurnState) -> HandlerResult:
        turn.user_content += event.content or ""
        self.client.query(
            queries.SET_USER_CONTENT,
            {"turn_id": turn.turn_id, "user_content": turn.user_content},
        )
        return HandlerResult(handled=True, action="user_content_recorded", node_id=turn.turn_id)

    def _emit(self, payload: dict[str, Any]) -> None:
        if self.on_node_created is None:
            return
        try:
            self.on_node_created(payload)
        except Exception as exc:
            log.warning(
                "node_created_notify_failed",
                node_type=payload.get("type"),
                node_id=payload.get("id"),
                error=str(exc),
            )
