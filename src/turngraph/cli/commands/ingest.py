from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any

import orjson

from ...config import Settings
from ...engine import TurnEngine
from ...errors import ValidationError
from ...graph.client import FalkorGraphClient
from ...ingestion import IngestionProcessor
from ...logs import get_logger
from ...pipeline import Pipeline
from ..helpers.jsonio import print_json

log = get_logger("cli.ingest")


def _read_events(fh: IO[bytes]) -> Iterator[Any]:
    for lineno, line in enumerate(fh, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield orjson.loads(line)
        except orjson.JSONDecodeError as exc:
            log.warning("line_not_json", line=lineno, error=str(exc))


def _handler(args: argparse.Namespace, settings: Settings) -> int:
    client = FalkorGraphClient(url=settings.falkor_url, graph_name=settings.graph_name)
    client.connect()
    try:
        engine = TurnEngine(client, session_ttl_s=settings.session_ttl_s)
        engine.initializer.ensure_schema()
        pipeline = Pipeline(IngestionProcessor(session_ttl_s=settings.session_ttl_s), engine)
        if args.file == "-":
            stats = pipeline.run(_read_events(sys.stdin.buffer))
        else:
            path = Path(args.file)
            if not path.exists():
                raise ValidationError(f"no such file: {path}", field="file")
            with path.open("rb") as fh:
                stats = pipeline.run(_read_events(fh))
    finally:
        client.disconnect()

    if getattr(args, "as_json", False):
        print_json(
            {
                "received": stats.received,
                "dropped": stats.dropped,
                "parsed": stats.parsed,
                "handled": stats.handled,
                "actions": stats.actions,
            }
        )
        return 0
    print(
        f"received={stats.received} dropped={stats.dropped} "
        f"parsed={stats.parsed} handled={stats.handled}"
    )
    for action, count in sorted(stats.actions.items()):
        print(f"  {action}: {count}")
    return 0


def register(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    ing = sub.add_parser("ingest", help="Ingest raw provider events from a JSON lines file")
    ing.add_argument("file", help="Path to a .jsonl file of raw events, or - for stdin")
    ing.add_argument("--json", dest="as_json", action="store_true", help="Emit JSON output")
    ing.set_defaults(func=_handler)
