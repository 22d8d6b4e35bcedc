from __future__ import annotations

from typing import Any

from ..errors import ValidationError
from . import queries
from .client import GraphClient

DEFAULT_MAX_HOPS = 100


def linear_timeline(
    client: GraphClient, session_id: str, *, max_hops: int = DEFAULT_MAX_HOPS
) -> list[dict[str, Any]]:
    """Thought nodes of a session in ``vt_start`` order.

    Walks ``Session-[:TRIGGERS]->first`` then ``NEXT*0..max_hops``. The hop cap
    is part of the statement text (Cypher cannot parameterize path bounds), so
    it is validated as a plain int first.
    """

    if isinstance(max_hops, bool) or not isinstance(max_hops, int) or not 0 <= max_hops <= 10_000:
        raise ValidationError(f"max_hops must be an int in [0, 10000], got {max_hops!r}")
    cypher = queries.LINEAR_TIMELINE.format(max_hops=max_hops)
    rows = client.query(cypher, {"session_id": session_id})
    timeline: list[dict[str, Any]] = []
    seen: set[Any] = set()
    for row in rows:
        node = row.get("t", row.get("0"))
        if not isinstance(node, dict):
            continue
        props = dict(node.get("properties") or {})
        props.setdefault("id", node.get("id"))
        if props["id"] in seen:
            continue
        seen.add(props["id"])
        timeline.append(props)
    timeline.sort(key=lambda p: p.get("vt_start") or 0)
    return timeline
