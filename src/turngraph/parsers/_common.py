from __future__ import annotations

from typing import Any

from ..errors import ParseError


def require_object(payload: Any, provider: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ParseError(
            f"{provider} payload must be a JSON object, got {type(payload).__name__}",
            provider=provider,
        )
    return payload


def optional_object(parent: dict[str, Any], key: str, provider: str) -> dict[str, Any] | None:
    value = parent.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ParseError(f"{provider} field {key!r} must be an object", provider=provider)
    return value


def token_count(source: dict[str, Any] | None, key: str, provider: str) -> int | None:
    """Read a token count; None when absent, ParseError when not a non-negative int."""
    if source is None:
        return None
    value = source.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ParseError(
            f"{provider} token count {key!r} must be a non-negative integer, got {value!r}",
            provider=provider,
        )
    return value


def optional_str(source: dict[str, Any] | None, key: str) -> str | None:
    if source is None:
        return None
    value = source.get(key)
    return value if isinstance(value, str) and value else None


def optional_int(source: dict[str, Any] | None, key: str) -> int | None:
    if source is None:
        return None
    value = source.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None
