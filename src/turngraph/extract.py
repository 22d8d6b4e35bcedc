from __future__ import annotations

from dataclasses import dataclass, field


def _partial_suffix_len(buffer: str, tag: str) -> int:
    """Length of the longest buffer suffix that is a proper prefix of ``tag``."""
    for n in range(min(len(tag) - 1, len(buffer)), 0, -1):
        if buffer.endswith(tag[:n]):
            return n
    return 0


@dataclass
class TagExtractor:
    """Streaming splitter for marker-delimited blocks inside a text stream.

    Feed chunks with ``process``; text outside ``open_tag``/``close_tag`` comes
    back under ``"content"`` and text inside under ``field_name``. Tags may be
    split across any number of chunks: a buffer tail that could still grow into
    a tag is held back until the next chunk decides it. Empty values are
    omitted from the result.

    Use one instance per stream (session). ``reset`` makes an instance
    reusable for an unrelated stream.
    """

    open_tag: str = "<thinking>"
    close_tag: str = "</thinking>"
    field_name: str = "thought"
    include_markers: bool = False

    _buffer: str = field(default="", init=False, repr=False)
    _inside: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.open_tag or not self.close_tag:
            raise ValueError("open_tag and close_tag must be non-empty")
        if self.field_name == "content":
            raise ValueError("field_name must differ from 'content'")

    @property
    def inside_block(self) -> bool:
        return self._inside

    def process(self, chunk: str) -> dict[str, str]:
        content: list[str] = []
        extracted: list[str] = []
        for kind, text in self.segments(chunk):
            (content if kind == "content" else extracted).append(text)
        return self._result("".join(content), "".join(extracted))

    def segments(self, chunk: str) -> list[tuple[str, str]]:
        """Like ``process`` but keeps stream order.

        Returns ``(kind, text)`` pairs where kind is ``"content"`` or
        ``field_name``. Adjacent pieces of the same kind are merged.
        """
        self._buffer += chunk
        out: list[tuple[str, str]] = []

        while self._buffer:
            if not self._inside:
                idx = self._buffer.find(self.open_tag)
                if idx != -1:
                    self._append(out, "content", self._buffer[:idx])
                    self._buffer = self._buffer[idx + len(self.open_tag) :]
                    self._inside = True
                    if self.include_markers:
                        self._append(out, self.field_name, self.open_tag)
                    continue
                held = _partial_suffix_len(self._buffer, self.open_tag)
                self._append(out, "content", self._buffer[: len(self._buffer) - held])
                self._buffer = self._buffer[len(self._buffer) - held :]
                break

            idx = self._buffer.find(self.close_tag)
            if idx != -1:
                self._append(out, self.field_name, self._buffer[:idx])
                if self.include_markers:
                    self._append(out, self.field_name, self.close_tag)
                self._buffer = self._buffer[idx + len(self.close_tag) :]
                self._inside = False
                continue
            held = _partial_suffix_len(self._buffer, self.close_tag)
            self._append(out, self.field_name, self._buffer[: len(self._buffer) - held])
            self._buffer = self._buffer[len(self._buffer) - held :]
            break

        return out

    def flush(self) -> dict[str, str]:
        """Release any held-back partial tag at end of stream."""
        rest = self._buffer
        self._buffer = ""
        if self._inside:
            return self._result("", rest)
        return self._result(rest, "")

    def reset(self) -> None:
        self._buffer = ""
        self._inside = False

    def _result(self, content: str, extracted: str) -> dict[str, str]:
        out: dict[str, str] = {}
        if content:
            out["content"] = content
        if extracted:
            out[self.field_name] = extracted
        return out

    @staticmethod
    def _append(out: list[tuple[str, str]], kind: str, text: str) -> None:
        if not text:
            return
        if out and out[-1][0] == kind:
            out[-1] = (kind, out[-1][1] + text)
        else:
            out.append((kind, text))
