from __future__ import annotations

import hashlib
from collections.abc import Iterable
from pathlib import Path
from typing import IO, Protocol, runtime_checkable
from urllib.parse import unquote, urlparse
from uuid import uuid4

from .codec import zstd_compress, zstd_compressor, zstd_decompress
from .errors import StorageError
from .events import hash_bytes
from .logs import get_logger

log = get_logger("storage")


class BlobStore(Protocol):
    def save(self, content: str | bytes) -> str: ...

    def read(self, uri: str) -> str: ...


@runtime_checkable
class LineBlobStore(BlobStore, Protocol):
    """A blob store that can write large documents without holding them in memory."""

    def save_lines(self, lines: Iterable[str]) -> str: ...


class FileSystemBlobStore:
    """Content-addressed blobs on local disk.

    Blobs live under ``root/<sha[:2]>/<sha>`` (plus ``.zst`` when compressed),
    keyed by the SHA-256 of the uncompressed content, and are addressed by
    ``file://`` URIs. Writes land in a ``.tmp`` file first and are renamed
    into place, so a reader never sees a partial blob.
    """

    def __init__(self, root: Path | str, *, compress: bool = False) -> None:
        self.root = Path(root).resolve()
        self.compress = compress

    def save(self, content: str | bytes) -> str:
        payload = content.encode("utf-8") if isinstance(content, str) else content
        digest = hash_bytes(payload)
        final_path = self._path_for(digest)
        if final_path.exists():
            return final_path.as_uri()
        data = zstd_compress(payload) if self.compress else payload
        tmp_path = self._tmp_path()
        try:
            tmp_path.write_bytes(data)
            self._finalize(tmp_path, final_path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"failed to write blob: {exc}", uri=final_path.as_uri()) from exc
        log.debug("blob_saved", uri=final_path.as_uri(), size_bytes=len(data))
        return final_path.as_uri()

    def save_lines(self, lines: Iterable[str]) -> str:
        """Stream ``lines`` joined by newlines into one blob."""
        hasher = hashlib.sha256()
        tmp_path = self._tmp_path()
        size = 0
        try:
            with tmp_path.open("wb") as fh:
                if self.compress:
                    with zstd_compressor().stream_writer(fh, closefd=False) as writer:
                        size = self._write_lines(writer, lines, hasher)
                else:
                    size = self._write_lines(fh, lines, hasher)
            final_path = self._path_for(hasher.hexdigest())
            self._finalize(tmp_path, final_path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"failed to stream blob: {exc}") from exc
        except BaseException:
            # a failing ``lines`` source must not leave a partial archive behind
            tmp_path.unlink(missing_ok=True)
            raise
        log.debug("blob_streamed", uri=final_path.as_uri(), size_bytes=size)
        return final_path.as_uri()

    def read(self, uri: str) -> str:
        """Return the UTF-8 text of the blob at ``uri``."""
        parsed = urlparse(uri)
        if parsed.scheme != "file":
            raise StorageError(f"unsupported blob URI scheme: {parsed.scheme!r}", uri=uri)
        path = Path(unquote(parsed.path))
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise StorageError("blob not found", uri=uri) from exc
        except OSError as exc:
            raise StorageError(f"failed to read blob: {exc}", uri=uri) from exc
        if path.suffix == ".zst":
            data = zstd_decompress(data)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError("blob is not UTF-8 text", uri=uri) from exc

    # --- helpers ---

    def _path_for(self, digest: str) -> Path:
        name = f"{digest}.zst" if self.compress else digest
        return self.root / digest[:2] / name

    def _tmp_path(self) -> Path:
        tmp_dir = self.root / "tmp"
        tmp_dir.mkdir(parents=True, exist_ok=True)
        return tmp_dir / f"{uuid4().hex}.tmp"

    @staticmethod
    def _write_lines(out: IO[bytes], lines: Iterable[str], hasher: hashlib._Hash) -> int:
        size = 0
        for i, line in enumerate(lines):
            chunk = (line if i == 0 else "\n" + line).encode("utf-8")
            hasher.update(chunk)
            out.write(chunk)
            size += len(chunk)
        return size

    @staticmethod
    def _finalize(tmp_path: Path, final_path: Path) -> None:
        final_path.parent.mkdir(parents=True, exist_ok=True)
        # Identical content already stored; keep the existing file
        if final_path.exists():
            tmp_path.unlink(missing_ok=True)
            return
        tmp_path.replace(final_path)
