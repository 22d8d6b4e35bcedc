from __future__ import annotations

import sys
from typing import Any

import orjson


def dumps_text(obj: Any) -> str:
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode("utf-8")


def print_json(obj: Any) -> None:
    """Pretty-print ``obj`` as JSON on stdout."""
    sys.stdout.write(dumps_text(obj) + "\n")
