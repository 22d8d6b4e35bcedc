from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .errors import ValidationError

_DAY_MS = 24 * 60 * 60 * 1000


def _env_int(env: Mapping[str, str], key: str, default: int, *, minimum: int = 0) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be an integer, got {raw!r}", field=key) from exc
    if value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}, got {value}", field=key)
    return value


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    val = raw.strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    raise ValidationError(f"{key} must be a boolean, got {raw!r}", field=key)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration.

    Every field has a default; ``from_env`` overlays ``TURNGRAPH_*`` variables.
    """

    falkor_url: str = "redis://localhost:6379"
    graph_name: str = "turngraph"
    blob_path: Path = Path("./data/blobs")
    blob_compress: bool = False
    retention_days: int = 30
    prune_interval_s: int = 3600
    session_ttl_s: int = 1800
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def retention_ms(self) -> int:
        return self.retention_days * _DAY_MS

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        return cls(
            falkor_url=env.get("TURNGRAPH_FALKOR_URL", cls.falkor_url),
            graph_name=env.get("TURNGRAPH_GRAPH_NAME", cls.graph_name),
            blob_path=Path(env.get("TURNGRAPH_BLOB_PATH", str(cls.blob_path))),
            blob_compress=_env_bool(env, "TURNGRAPH_BLOB_COMPRESS", cls.blob_compress),
            retention_days=_env_int(env, "TURNGRAPH_RETENTION_DAYS", cls.retention_days),
            prune_interval_s=_env_int(
                env, "TURNGRAPH_PRUNE_INTERVAL_S", cls.prune_interval_s, minimum=1
            ),
            session_ttl_s=_env_int(env, "TURNGRAPH_SESSION_TTL_S", cls.session_ttl_s, minimum=1),
            log_level=env.get("TURNGRAPH_LOG_LEVEL", cls.log_level),
            log_json=_env_bool(env, "TURNGRAPH_LOG_JSON", cls.log_json),
        )
