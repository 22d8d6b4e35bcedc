from __future__ import annotations

import argparse

from ...bitemporal import is_current
from ...config import Settings
from ...graph.client import FalkorGraphClient
from ...graph.timeline import DEFAULT_MAX_HOPS, linear_timeline
from ..helpers.jsonio import print_json


def _handler(args: argparse.Namespace, settings: Settings) -> int:
    client = FalkorGraphClient(url=settings.falkor_url, graph_name=settings.graph_name)
    client.connect()
    try:
        timeline = linear_timeline(client, args.session_id, max_hops=args.max_hops)
    finally:
        client.disconnect()

    if getattr(args, "as_json", False):
        print_json(timeline)
        return 0
    if not timeline:
        print(f"No turns recorded for session {args.session_id}")
        return 0
    for i, turn in enumerate(timeline):
        preview = (turn.get("preview") or turn.get("content") or "").replace("\n", " ")
        if len(preview) > 80:
            preview = preview[:77] + "..."
        tokens = f"in={turn.get('input_tokens', '-')} out={turn.get('output_tokens', '-')}"
        # finalization closes the transaction interval of a Thought
        status = "open " if is_current(turn) else "final"
        print(f"{i:>3}  {status}  {turn.get('id')}  {tokens}  {preview}")
    return 0


def register(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    rp = sub.add_parser("replay", help="Print a session's turns in order")
    rp.add_argument("session_id")
    rp.add_argument(
        "--max-hops",
        dest="max_hops",
        type=int,
        default=DEFAULT_MAX_HOPS,
        help=f"Longest NEXT chain to follow (default {DEFAULT_MAX_HOPS})",
    )
    rp.add_argument("--json", dest="as_json", action="store_true", help="Emit JSON output")
    rp.set_defaults(func=_handler)
