from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlparse

from falkordb import Edge, FalkorDB, Node

from ..errors import GraphOperationError
from ..logs import get_logger

Row = dict[str, Any]

log = get_logger("graph")


class GraphClient(Protocol):
    """Graph store contract: parameterized Cypher in, structured rows out."""

    def connect(self) -> None: ...

    def query(self, cypher: str, params: dict[str, Any] | None = None) -> list[Row]: ...

    def disconnect(self) -> None: ...


def normalize_value(value: Any) -> Any:
    """Turn driver objects into plain dicts/lists.

    Nodes become ``{id, labels, properties}``; edges become
    ``{id, relationshipType, sourceId, destinationId, properties}``.
    """

    if isinstance(value, Node):
        return {
            "id": value.id,
            "labels": list(value.labels or []),
            "properties": dict(value.properties or {}),
        }
    if isinstance(value, Edge):
        src = value.src_node.id if isinstance(value.src_node, Node) else value.src_node
        dst = value.dest_node.id if isinstance(value.dest_node, Node) else value.dest_node
        return {
            "id": value.id,
            "relationshipType": value.relation,
            "sourceId": src,
            "destinationId": dst,
            "properties": dict(value.properties or {}),
        }
    if isinstance(value, list):
        return [normalize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: normalize_value(v) for k, v in value.items()}
    return value


def _column_name(col: Any, i: int) -> str:
    if isinstance(col, list | tuple) and len(col) >= 2:
        return str(col[1])
    if isinstance(col, str):
        return col
    return str(i)


@dataclass
class FalkorGraphClient:
    """FalkorDB-backed ``GraphClient``.

    The underlying redis connection pool is safe for concurrent callers, so one
    instance can be shared across session workers.
    """

    url: str = "redis://localhost:6379"
    graph_name: str = "turngraph"
    _db: FalkorDB | None = field(default=None, init=False, repr=False)
    _graph: Any = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def connect(self) -> None:
        with self._lock:
            if self._graph is not None:
                return
            parsed = urlparse(self.url)
            try:
                self._db = FalkorDB(
                    host=parsed.hostname or "localhost",
                    port=parsed.port or 6379,
                    username=parsed.username or None,
                    password=parsed.password or None,
                )
                self._graph = self._db.select_graph(self.graph_name)
            except Exception as exc:
                self._db = None
                raise GraphOperationError(f"failed to connect to {self.url}: {exc}") from exc
        log.info("graph_connected", graph=self.graph_name, host=parsed.hostname)

    def query(self, cypher: str, params: dict[str, Any] | None = None) -> list[Row]:
        if self._graph is None:
            self.connect()
        try:
            result = self._graph.query(cypher, params or {})
        except Exception as exc:
            raise GraphOperationError(str(exc), query=cypher, params=params) from exc
        header = getattr(result, "header", None) or []
        names = [_column_name(col, i) for i, col in enumerate(header)]
        rows: list[Row] = []
        for raw in result.result_set or []:
            if names and len(names) == len(raw):
                rows.append({n: normalize_value(v) for n, v in zip(names, raw, strict=True)})
            else:
                rows.append({str(i): normalize_value(v) for i, v in enumerate(raw)})
        return rows

    def disconnect(self) -> None:
        with self._lock:
            db, self._db, self._graph = self._db, None, None
        if db is not None:
            try:
                db.connection.close()
            except Exception as exc:
                raise GraphOperationError(f"failed to disconnect: {exc}") from exc
