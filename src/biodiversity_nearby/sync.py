"""Viewport refresh: fan out per-cell syncs, fan in one record list.

``SyncOrchestrator.refresh`` takes the cells covering the viewport and

1. skips the network entirely when more than ``sync_threshold`` cells are
   visible (zoomed far out), returning only what is already cached;
2. otherwise syncs every cell on a thread pool and waits for all of them;
3. merges every cell's records into one list, unique by occurrence id.

A cell whose fetch fails, or whose entry cannot be written (disk full,
permissions), contributes its previously cached records and one
``CellSyncWarning``; it never blocks the other cells.

At most one sync per cell is in flight at any time.  A refresh that asks for
a cell still being synced by an earlier, superseded refresh waits on that
sync instead of starting a second one, so each entry has a single writer.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from biodiversity_nearby.errors import RemoteFetchFailed

if TYPE_CHECKING:
    from collections.abc import Iterable

    from biodiversity_nearby.cache import CellCacheStore
    from biodiversity_nearby.schemas import CellCacheEntry, OccurrenceRecord

logger = logging.getLogger(__name__)

DEFAULT_SYNC_THRESHOLD = 10
DEFAULT_MAX_WORKERS = 8


# =============================================================================
# Results
# =============================================================================


@dataclass
class CellSyncWarning:
    """A cell whose sync failed; its cached records were used instead."""

    cell_id: str
    error: RemoteFetchFailed | OSError

    @property
    def message(self) -> str:
        return f"cell {self.cell_id}: {self.error}"


@dataclass
class RefreshResult:
    """Aggregated records for a set of visible cells."""

    cells: list[str]
    records: list[OccurrenceRecord]
    warnings: list[CellSyncWarning] = field(default_factory=list)
    degraded: bool = False  # True when syncing was skipped by the scale guard

    @property
    def failed_cells(self) -> list[str]:
        return [w.cell_id for w in self.warnings]


def union_records(groups: Iterable[Iterable[OccurrenceRecord]]) -> list[OccurrenceRecord]:
    """Concatenate record groups, keeping the first record of each id."""
    seen: set[int] = set()
    out: list[OccurrenceRecord] = []
    for group in groups:
        for record in group:
            if record.id not in seen:
                seen.add(record.id)
                out.append(record)
    return out


# =============================================================================
# Orchestrator
# =============================================================================


class SyncOrchestrator:
    """Drives ``CellCacheStore.sync`` for the visible cells."""

    def __init__(
        self,
        cache: CellCacheStore,
        *,
        sync_threshold: int = DEFAULT_SYNC_THRESHOLD,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.cache = cache
        self.sync_threshold = sync_threshold
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cell-sync")
        # Re-entrant: a future that is already done runs its callback inline.
        self._lock = threading.RLock()
        self._in_flight: dict[str, Future[CellCacheEntry]] = {}

    def __enter__(self) -> SyncOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Wait for in-flight syncs to persist, then stop the workers."""
        self._executor.shutdown(wait=True)

    def in_flight(self) -> set[str]:
        """Cells with a sync currently running or queued."""
        with self._lock:
            return set(self._in_flight)

    def refresh(self, visible_cells: Iterable[str]) -> RefreshResult:
        """
        Sync the visible cells and return their combined records.

        Args:
            visible_cells: Cell ids covering the viewport (duplicates ignored).

        Returns:
            RefreshResult with records unique by id, in cell order.

        Raises:
            Exception: Any error other than ``RemoteFetchFailed`` or ``OSError``
                raised by a cell sync, re-raised after every cell has settled.
        """
        cells = list(dict.fromkeys(visible_cells))

        if len(cells) > self.sync_threshold:
            logger.info(
                "%d cells visible (> %d); using cached data only", len(cells), self.sync_threshold
            )
            records = union_records(self._cached(c) for c in cells)
            return RefreshResult(cells=cells, records=records, degraded=True)

        futures = {cell: self._submit(cell) for cell in cells}
        wait(futures.values())

        groups: list[list[OccurrenceRecord]] = []
        warnings: list[CellSyncWarning] = []
        unexpected: BaseException | None = None
        for cell, future in futures.items():
            error = future.exception()
            if error is None:
                groups.append(future.result().records)
            elif isinstance(error, (RemoteFetchFailed, OSError)):
                logger.warning("Sync failed for cell %s: %s", cell, error)
                warnings.append(CellSyncWarning(cell_id=cell, error=error))
                groups.append(self._cached(cell))
            else:
                logger.error("Unexpected error syncing cell %s", cell, exc_info=error)
                unexpected = unexpected or error

        if unexpected is not None:
            raise unexpected

        records = union_records(groups)
        logger.info(
            "Refreshed %d cells: %d records, %d failed", len(cells), len(records), len(warnings)
        )
        return RefreshResult(cells=cells, records=records, warnings=warnings)

    def _submit(self, cell_id: str) -> Future[CellCacheEntry]:
        with self._lock:
            future = self._in_flight.get(cell_id)
            if future is not None:
                logger.debug("Joining in-flight sync for cell %s", cell_id)
                return future
            future = self._executor.submit(self.cache.sync, cell_id)
            self._in_flight[cell_id] = future
            future.add_done_callback(partial(self._release, cell_id))
            return future

    def _release(self, cell_id: str, future: Future[CellCacheEntry]) -> None:
        with self._lock:
            if self._in_flight.get(cell_id) is future:
                del self._in_flight[cell_id]

    def _cached(self, cell_id: str) -> list[OccurrenceRecord]:
        try:
            return self.cache.records(cell_id)
        except OSError as exc:
            logger.warning("Cached records unreadable for cell %s: %s", cell_id, exc)
            return []
