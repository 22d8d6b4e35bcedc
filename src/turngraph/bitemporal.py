"""Bitemporal envelope carried by every graph node.

Valid time (``vt_*``) says when a fact held; transaction time (``tt_*``) says
when it was recorded. Values are epoch milliseconds. Open ends use
``OPEN_END`` rather than null so range predicates such as
``n.tt_end < $threshold`` never match current facts.
"""

from __future__ import annotations

from typing import Any

# 9999-12-31T23:59:59.999Z
OPEN_END = 253402300799999


def is_current(node_props: dict[str, Any]) -> bool:
    """True when the node's transaction interval is still open."""
    return node_props.get("tt_end", OPEN_END) == OPEN_END
