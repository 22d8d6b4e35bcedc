from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .clock import SystemTimeProvider, TimeProvider

T = TypeVar("T")


@dataclass
class _Slot(Generic[T]):
    value: T
    last_seen_ms: int


class SessionArena(Generic[T]):
    """Per-session state keyed by session id, evicted after ``ttl_s`` idle.

    The lock guards the dictionary only. Values are owned by whichever
    consumer is currently processing that session.
    """

    def __init__(
        self,
        factory: Callable[[str], T],
        *,
        ttl_s: int = 1800,
        clock: TimeProvider | None = None,
    ) -> None:
        self._factory = factory
        self._ttl_ms = ttl_s * 1000
        self._clock = clock or SystemTimeProvider()
        self._slots: dict[str, _Slot[T]] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str) -> T:
        now = self._clock.now_ms()
        with self._lock:
            slot = self._slots.get(session_id)
            if slot is None or now - slot.last_seen_ms > self._ttl_ms:
                slot = _Slot(self._factory(session_id), now)
                self._slots[session_id] = slot
            else:
                slot.last_seen_ms = now
            return slot.value

    def evict_expired(self) -> list[str]:
        """Drop idle sessions; returns the evicted ids."""
        now = self._clock.now_ms()
        with self._lock:
            expired = [sid for sid, s in self._slots.items() if now - s.last_seen_ms > self._ttl_ms]
            for sid in expired:
                del self._slots[sid]
        return expired

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._slots.pop(session_id, None)

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._slots)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
