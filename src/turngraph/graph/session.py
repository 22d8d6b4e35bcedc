from __future__ import annotations

from dataclasses import dataclass, field

from ..bitemporal import OPEN_END
from ..clock import SystemTimeProvider, TimeProvider
from ..errors import GraphOperationError
from ..logs import get_logger
from . import queries
from .client import GraphClient

log = get_logger("session")


@dataclass
class SessionInitializer:
    """Ensure exactly one ``Session`` node exists per session id.

    A cheap ``MATCH`` covers the common case. When it misses, the node is
    written with ``MERGE``: FalkorDB executes write queries one at a time per
    graph, so two concurrent first-touches cannot both create a node. The
    index created by ``ensure_schema`` keeps the lookup constant-time.
    """

    client: GraphClient
    clock: TimeProvider = field(default_factory=SystemTimeProvider)

    def ensure_schema(self) -> None:
        try:
            self.client.query(queries.ENSURE_SESSION_INDEX)
        except GraphOperationError as exc:
            # FalkorDB reports an existing index as an error rather than a no-op
            if "already indexed" not in str(exc):
                raise
            log.debug("session_index_exists")

    def ensure_session(self, session_id: str) -> bool:
        """Return True when this call created the Session node."""
        rows = self.client.query(queries.FIND_SESSION, {"session_id": session_id})
        if rows:
            return False
        now = self.clock.now_ms()
        created_rows = self.client.query(
            queries.CREATE_SESSION,
            {"session_id": session_id, "now": now, "open_end": OPEN_END},
        )
        created = bool(created_rows) and created_rows[0].get("tt_start") == now
        log.info("session_ensured", session_id=session_id, created=created)
        return created
