"""Provider payload parsers.

Each provider is one pure function ``payload -> StreamDelta | None`` in the
``PARSERS`` table; ``parse`` dispatches on the provider tag. Providers whose
payloads can hold several blocks also register in ``MULTI_PARSERS``, and
``parse_all`` returns every delta of such a payload in order.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..errors import ParseError
from ..events import Provider, StreamDelta
from . import anthropic, claude_code, opencode, openai

ParserFn = Callable[[Any], StreamDelta | None]
MultiParserFn = Callable[[Any], list[StreamDelta]]

PARSERS: dict[Provider, ParserFn] = {
    Provider.OPENAI: openai.parse,
    Provider.ANTHROPIC: anthropic.parse,
    Provider.OPENCODE: opencode.parse,
    Provider.CLAUDE_CODE: claude_code.parse,
}

MULTI_PARSERS: dict[Provider, MultiParserFn] = {
    Provider.CLAUDE_CODE: claude_code.parse_all,
}


def _provider(provider: Provider | str) -> Provider:
    try:
        return Provider(provider)
    except ValueError as exc:
        raise ParseError(f"unknown provider: {provider!r}", provider=str(provider)) from exc


def parse(provider: Provider | str, payload: Any) -> StreamDelta | None:
    """Normalize ``payload`` from ``provider``; None when nothing actionable."""
    return PARSERS[_provider(provider)](payload)


def parse_all(provider: Provider | str, payload: Any) -> list[StreamDelta]:
    key = _provider(provider)
    if key in MULTI_PARSERS:
        return MULTI_PARSERS[key](payload)
    delta = PARSERS[key](payload)
    return [delta] if delta is not None else []


__all__ = ["MULTI_PARSERS", "MultiParserFn", "PARSERS", "ParserFn", "parse", "parse_all"]
