from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

# (kind, pattern); order matters where patterns overlap (sk-ant- before sk-)
DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
    (
        "private_key",
        r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----",
    ),
    ("anthropic_key", r"\bsk-ant-[A-Za-z0-9_\-]{20,}"),
    ("openai_key", r"\bsk-(?:proj-)?[A-Za-z0-9_\-]{20,}"),
    ("aws_access_key", r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b"),
    ("github_token", r"\bgh[pousr]_[A-Za-z0-9]{36,}\b"),
    ("bearer_token", r"(?i)\bbearer\s+[A-Za-z0-9\-._~+/]{16,}=*"),
    ("email", r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"),
)


@dataclass(frozen=True)
class Redactor:
    """Replace secrets and personal data in free text with ``[REDACTED:<kind>]``."""

    patterns: Sequence[tuple[str, str]] = DEFAULT_PATTERNS

    def __post_init__(self) -> None:
        compiled = tuple((kind, re.compile(p)) for kind, p in self.patterns)
        object.__setattr__(self, "_compiled", compiled)

    def redact(self, text: str) -> str:
        if not text:
            return text
        for kind, rx in self._compiled:  # type: ignore[attr-defined]
            text = rx.sub(f"[REDACTED:{kind}]", text)
        return text
