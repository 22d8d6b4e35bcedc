from __future__ import annotations

import argparse
from collections.abc import Callable

from ..config import Settings
from ..errors import TurngraphError
from ..logs import configure_logging, get_logger

Handler = Callable[[argparse.Namespace, Settings], int]

log = get_logger("cli")


def _register_commands(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    # Import locally so `--help` does not pull in the graph driver.
    from .commands import ingest as _cmd_ingest
    from .commands import prune as _cmd_prune
    from .commands import replay as _cmd_replay

    _cmd_ingest.register(sub)
    _cmd_prune.register(sub)
    _cmd_replay.register(sub)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="turngraph")
    p.add_argument("--log-level", default=None, help="Override TURNGRAPH_LOG_LEVEL")
    p.add_argument(
        "--log-json", action="store_true", default=None, help="Emit logs as JSON lines"
    )
    sub = p.add_subparsers(dest="cmd", required=True)
    _register_commands(sub)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = Settings.from_env()
    except TurngraphError as exc:
        parser.error(str(exc))
    configure_logging(
        args.log_level or settings.log_level,
        json=settings.log_json if args.log_json is None else args.log_json,
    )

    func: Handler | None = getattr(args, "func", None)
    if func is None:
        # Should not happen due to required=True
        return 1
    try:
        return int(func(args, settings))
    except TurngraphError as exc:
        log.error("command_failed", command=args.cmd, error=str(exc), error_type=type(exc).__name__)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
