from __future__ import annotations

import argparse
import signal
import threading

from ...config import Settings
from ...errors import ValidationError
from ...graph.client import FalkorGraphClient
from ...pruner import GraphPruner, PruneScheduler
from ...storage import FileSystemBlobStore
from ..helpers.jsonio import print_json

_DAY_MS = 24 * 60 * 60 * 1000

# ``--every`` given without a value: use TURNGRAPH_PRUNE_INTERVAL_S
_CONFIGURED_INTERVAL = "configured"


def _handler(args: argparse.Namespace, settings: Settings) -> int:
    if args.retention_days is None:
        retention_ms = settings.retention_ms
    elif args.retention_days < 0:
        raise ValidationError("--retention-days must be >= 0", field="retention_days")
    else:
        retention_ms = args.retention_days * _DAY_MS

    interval_s: float | None = args.every
    if args.every == _CONFIGURED_INTERVAL:
        interval_s = settings.prune_interval_s
    if interval_s is not None and interval_s <= 0:
        raise ValidationError("--every must be > 0", field="every")

    store: FileSystemBlobStore | None = None
    if args.archive:
        store = FileSystemBlobStore(settings.blob_path, compress=settings.blob_compress)
    client = FalkorGraphClient(url=settings.falkor_url, graph_name=settings.graph_name)
    client.connect()
    try:
        pruner = GraphPruner(client, store)
        if interval_s is not None:
            stop = threading.Event()
            signal.signal(signal.SIGINT, lambda *_: stop.set())
            signal.signal(signal.SIGTERM, lambda *_: stop.set())
            passes = PruneScheduler(pruner, interval_s, retention_ms).run(stop)
            print(f"Stopped after {passes} prune pass(es)")
            return 0
        result = pruner.prune_history(retention_ms)
    finally:
        client.disconnect()

    if getattr(args, "as_json", False):
        print_json(
            {"archived": result.archived, "deleted": result.deleted, "archive_uri": result.archive_uri}
        )
        return 0
    print(f"Deleted {result.deleted} node(s), archived {result.archived}")
    if result.archive_uri:
        print(f"Archive: {result.archive_uri}")
    return 0


def register(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    pr = sub.add_parser("prune", help="Delete (and optionally archive) expired graph history")
    pr.add_argument(
        "--retention-days",
        dest="retention_days",
        type=int,
        default=None,
        help="Keep history newer than this many days (default: TURNGRAPH_RETENTION_DAYS)",
    )
    pr.add_argument(
        "--archive",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Archive nodes to the blob store before deleting (default on)",
    )
    pr.add_argument(
        "--every",
        type=float,
        nargs="?",
        const=_CONFIGURED_INTERVAL,
        default=None,
        metavar="SECONDS",
        help="Keep running, one pass every SECONDS (default: TURNGRAPH_PRUNE_INTERVAL_S)",
    )
    pr.add_argument("--json", dest="as_json", action="store_true", help="Emit JSON output")
    pr.set_defaults(func=_handler)
