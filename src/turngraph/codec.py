from __future__ import annotations

from typing import Any

import orjson
import zstandard as zstd


def to_text(obj: Any) -> str:
    """Serialize to a compact JSON string (single line, insertion-ordered keys)."""
    return orjson.dumps(obj).decode("utf-8")


def try_loads(data: str) -> Any | None:
    """Parse JSON text, returning None when it is not (yet) a complete document."""
    if not data:
        return None
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError:
        return None


_ZSTD_LEVEL_DEFAULT = 8


def zstd_compress(data: bytes, *, level: int = _ZSTD_LEVEL_DEFAULT) -> bytes:
    """Compress bytes with Zstandard (one-shot)."""

    compressor = zstd.ZstdCompressor(level=level)
    return compressor.compress(data)


def zstd_decompress(data: bytes) -> bytes:
    """Decompress Zstandard-compressed bytes.

    Works for streamed frames too, which do not record their content size.
    """
    return zstd.ZstdDecompressor().decompressobj().decompress(data)


def zstd_compressor(*, level: int = _ZSTD_LEVEL_DEFAULT) -> zstd.ZstdCompressor:
    """Return a compressor for streaming writes (``stream_writer``)."""
    return zstd.ZstdCompressor(level=level)
