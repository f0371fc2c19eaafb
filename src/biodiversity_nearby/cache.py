"""Per-cell occurrence cache with incremental sync.

Each H3 cell has one ``CellCacheEntry`` in the key/value store under
``cell:<cell_id>``.  Its ``last_synced_through`` watermark is the day up to
which GBIF has been fully queried for that cell.  A sync fetches only
``[watermark, yesterday)``: the current day is never treated as complete
upstream, so "yesterday" is the newest watermark a cell can reach.

Per cell the lifecycle is ``absent -> fresh -> fresh ...``; staleness is
never stored, it is computed from the watermark on demand.

Within one ``sync`` the order is fixed: read, fetch, merge, advance the
watermark, write.  A failed fetch leaves the stored entry untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from biodiversity_nearby import spatial
from biodiversity_nearby.datasources.gbif import search_occurrences
from biodiversity_nearby.errors import MalformedCacheEntry
from biodiversity_nearby.schemas import CellCacheEntry, OccurrenceRecord

if TYPE_CHECKING:
    from biodiversity_nearby.store import KeyValueStore

logger = logging.getLogger(__name__)

#: (wkt_polygon, start, end_exclusive, max_uncertainty_m) -> records
SearchFn = Callable[[str, date, date, int], list[OccurrenceRecord]]

KEY_PREFIX = "cell:"


def cell_key(cell_id: str) -> str:
    """Store key of a cell's cache entry."""
    return f"{KEY_PREFIX}{cell_id}"


# =============================================================================
# Encoding
# =============================================================================


def encode_entry(entry: CellCacheEntry) -> str:
    """Serialize an entry to the JSON string kept in the store."""
    return entry.model_dump_json()


def decode_entry(key: str, raw: str) -> CellCacheEntry:
    """Parse a stored entry.

    Raises:
        MalformedCacheEntry: ``raw`` is not valid JSON of the entry shape.
    """
    try:
        return CellCacheEntry.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedCacheEntry(key, f"{exc.error_count()} validation error(s)") from exc


# =============================================================================
# Merge
# =============================================================================


def merge_records(
    existing: Iterable[OccurrenceRecord],
    fetched: Iterable[OccurrenceRecord],
) -> tuple[list[OccurrenceRecord], int]:
    """Union two record sequences by ``id``.

    Records are immutable upstream, so the first copy of an id wins.
    Existing records keep their order; new ones follow in fetch order.

    Returns:
        (merged records, number of ids that were not already present)
    """
    merged: list[OccurrenceRecord] = []
    seen: set[int] = set()
    for record in existing:
        if record.id not in seen:
            seen.add(record.id)
            merged.append(record)

    before = len(merged)
    for record in fetched:
        if record.id not in seen:
            seen.add(record.id)
            merged.append(record)
    return merged, len(merged) - before


# =============================================================================
# Store
# =============================================================================


class CellCacheStore:
    """Owns every read and write of cell entries in the key/value store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        search: SearchFn = search_occurrences,
        today: Callable[[], date] = date.today,
        max_uncertainty_m: int = 500,
    ) -> None:
        self.store = store
        self.search = search
        self.today = today
        self.max_uncertainty_m = max_uncertainty_m

    def yesterday(self) -> date:
        """Newest day the remote source is considered complete for."""
        return self.today() - timedelta(days=1)

    def needs_sync(self, entry: CellCacheEntry | None) -> bool:
        """True if the cell was never synced or its watermark is behind yesterday."""
        return entry is None or entry.last_synced_through < self.yesterday()

    def load(self, cell_id: str) -> CellCacheEntry | None:
        """Read a cell's entry; missing or malformed entries read as None."""
        key = cell_key(cell_id)
        try:
            raw = self.store.get(key)
            return decode_entry(key, raw) if raw is not None else None
        except UnicodeDecodeError:
            error = MalformedCacheEntry(key, "not valid UTF-8")
        except MalformedCacheEntry as exc:
            error = exc
        logger.warning("%s; rebuilding cell from scratch", error)
        return None

    def records(self, cell_id: str) -> list[OccurrenceRecord]:
        """Cached records of a cell without syncing (empty if never synced)."""
        entry = self.load(cell_id)
        return list(entry.records) if entry is not None else []

    def sync(self, cell_id: str) -> CellCacheEntry:
        """
        Bring one cell up to date and return its entry.

        Does nothing (and makes no request) when the cell is already synced
        through yesterday.

        Raises:
            RemoteFetchFailed: The GBIF search failed; nothing was written.
            OSError: The updated entry could not be written.
            ValueError: ``cell_id`` is not a valid H3 cell.
        """
        existing = self.load(cell_id)
        if existing is not None and not self.needs_sync(existing):
            logger.debug("Cell %s already synced through %s", cell_id, existing.last_synced_through)
            return existing

        entry = existing or CellCacheEntry.empty()
        through = self.yesterday()
        wkt = spatial.polygon_wkt(spatial.cell_polygon(cell_id))

        fetched = self.search(wkt, entry.last_synced_through, through, self.max_uncertainty_m)
        merged, added = merge_records(entry.records, fetched)

        updated = CellCacheEntry(
            last_synced_through=max(entry.last_synced_through, through),
            records=merged,
        )
        self.store.set(cell_key(cell_id), encode_entry(updated))
        logger.info(
            "Synced cell %s through %s: %d fetched, %d new, %d total",
            cell_id,
            through,
            len(fetched),
            added,
            len(merged),
        )
        return updated
