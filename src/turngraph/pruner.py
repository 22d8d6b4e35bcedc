from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .clock import SystemTimeProvider, TimeProvider
from .codec import to_text
from .errors import TurngraphError
from .graph import queries
from .graph.client import GraphClient
from .logs import get_logger
from .storage import BlobStore, LineBlobStore

log = get_logger("pruner")

DEFAULT_RETENTION_MS = 30 * 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class PruneResult:
    archived: int
    deleted: int
    archive_uri: str | None = None


def _deleted_count(rows: list[Any]) -> int:
    if not rows:
        return 0
    first = rows[0]
    if isinstance(first, dict):
        value = first.get("deleted_count", first.get("0", 0))
    elif isinstance(first, (list, tuple)) and first:
        value = first[0]
    else:
        value = first
    return int(value or 0)


class GraphPruner:
    """Delete transaction-expired nodes, archiving them first when a store is set.

    A node is expired when ``tt_end < now - retention_ms``; open intervals carry
    the far-future sentinel and never match. Archiving writes one JSON line per
    node. If the archive cannot be saved nothing is deleted.
    """

    def __init__(
        self,
        client: GraphClient,
        archive_store: BlobStore | None = None,
        *,
        batch_size: int = 10_000,
        page_size: int = 10_000,
        clock: TimeProvider | None = None,
    ) -> None:
        if batch_size < 1 or page_size < 1:
            raise ValueError("batch_size and page_size must be positive")
        self.client = client
        self.archive_store = archive_store
        self.batch_size = batch_size
        self.page_size = page_size
        self.clock = clock or SystemTimeProvider()

    def prune_history(self, retention_ms: int = DEFAULT_RETENTION_MS) -> PruneResult:
        now = self.clock.now_ms()
        threshold = now - retention_ms

        archived = 0
        archive_uri: str | None = None
        if self.archive_store is not None:
            archived, archive_uri = self._archive(self.archive_store, threshold, now)

        deleted = self._delete(threshold)
        log.info(
            "prune_complete",
            threshold=threshold,
            archived=archived,
            deleted=deleted,
            archive_uri=archive_uri,
        )
        return PruneResult(archived=archived, deleted=deleted, archive_uri=archive_uri)

    def _fetch_page(self, threshold: int, skip: int) -> list[dict[str, Any]]:
        return self.client.query(
            queries.FETCH_EXPIRED_PAGE,
            {"threshold": threshold, "skip": skip, "limit": self.page_size},
        )

    def _archive(self, store: BlobStore, threshold: int, now: int) -> tuple[int, str | None]:
        first = self._fetch_page(threshold, 0)
        if not first:
            return 0, None

        counter = {"n": 0}

        def lines() -> Iterator[str]:
            page = first
            skip = 0
            while page:
                for row in page:
                    counter["n"] += 1
                    yield self._archive_line(row, threshold, now)
                if len(page) < self.page_size:
                    return
                skip += self.page_size
                page = self._fetch_page(threshold, skip)

        if len(first) < self.page_size or not isinstance(store, LineBlobStore):
            uri = store.save("\n".join(lines()))
        else:
            uri = store.save_lines(lines())
        log.info("nodes_archived", count=counter["n"], uri=uri)
        return counter["n"], uri

    @staticmethod
    def _archive_line(row: dict[str, Any], threshold: int, now: int) -> str:
        record: dict[str, Any] = {
            "_archived_at": now,
            "_threshold": threshold,
            "_node_id": row.get("node_id"),
            "labels": row.get("labels") or [],
        }
        record.update(row.get("props") or {})
        return to_text(record)

    def _delete(self, threshold: int) -> int:
        total = 0
        while True:
            rows = self.client.query(
                queries.DELETE_EXPIRED_BATCH,
                {"threshold": threshold, "batch_size": self.batch_size},
            )
            deleted = _deleted_count(rows)
            total += deleted
            if deleted < self.batch_size:
                return total
            log.debug("prune_batch_deleted", deleted=deleted, total=total)


class PruneScheduler:
    """Run prune passes every ``interval_s`` until ``stop_event`` is set."""

    def __init__(
        self, pruner: GraphPruner, interval_s: float, retention_ms: int = DEFAULT_RETENTION_MS
    ) -> None:
        self.pruner = pruner
        self.interval_s = interval_s
        self.retention_ms = retention_ms

    def run(self, stop_event: threading.Event, *, max_passes: int | None = None) -> int:
        passes = 0
        while not stop_event.is_set():
            try:
                self.pruner.prune_history(self.retention_ms)
            except TurngraphError as exc:
                # the next pass retries; nothing was deleted if archiving failed
                log.error("prune_failed", error=str(exc), error_type=type(exc).__name__)
            passes += 1
            if max_passes is not None and passes >= max_passes:
                break
            stop_event.wait(self.interval_s)
        return passes
