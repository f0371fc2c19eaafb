"""Occurrence search by polygon and date range, with pagination."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from pydantic import ValidationError

from biodiversity_nearby.datasources.gbif import client
from biodiversity_nearby.schemas import OccurrenceRecord

logger = logging.getLogger(__name__)

# =============================================================================
# Parsing
# =============================================================================


def _parse_event_date(value: Any) -> date | None:
    """Leading calendar date of a GBIF ``eventDate``.

    ``eventDate`` may be a timestamp (``2024-05-01T10:00:00``), a plain date,
    or an interval (``2024-05-01/2024-05-03``); partial dates yield None.
    """
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_occurrence(result: dict[str, Any]) -> OccurrenceRecord | None:
    """Parse one search result. Returns None if key or coordinates are missing."""
    key = result.get("key")
    lat = result.get("decimalLatitude")
    lon = result.get("decimalLongitude")
    if key is None or lat is None or lon is None:
        return None

    try:
        return OccurrenceRecord(
            id=key,
            scientific_name=result.get("scientificName") or "Unknown",
            taxon_id=result.get("taxonKey"),
            latitude=lat,
            longitude=lon,
            observed_at=_parse_event_date(result.get("eventDate")),
            basis_of_record=result.get("basisOfRecord") or "UNKNOWN",
            kingdom=result.get("kingdom"),
        )
    except ValidationError:
        logger.debug("Skipping unparseable occurrence %r", key)
        return None


# =============================================================================
# API Fetching
# =============================================================================


def date_range_param(start: date, end_exclusive: date) -> str:
    """GBIF range value for the half-open ``[start, end_exclusive)``.

    GBIF ranges are inclusive on both ends, so the last day sent is the day
    before ``end_exclusive``.
    """
    last = end_exclusive - timedelta(days=1)
    return f"{start.isoformat()},{last.isoformat()}"


def search_occurrences(
    polygon: str,
    start: date,
    end_exclusive: date,
    max_uncertainty_m: int = 500,
    *,
    page_size: int = client.PAGE_SIZE,
) -> list[OccurrenceRecord]:
    """
    Fetch every occurrence inside ``polygon`` interpreted in a date range.

    Pages through the search endpoint until the reported ``count`` has been
    fetched or a page comes back empty.  A failure on any page discards the
    pages already fetched for this call.

    Args:
        polygon: WKT polygon (counter-clockwise ring).
        start: First day of the range (inclusive).
        end_exclusive: Day after the last day of the range.
        max_uncertainty_m: Upper bound on coordinate uncertainty in metres.
        page_size: Records requested per page.

    Returns:
        Parsed records in server order.

    Raises:
        RemoteFetchFailed: A page request failed.
        MalformedResponse: A page body was not the expected shape.
    """
    if start >= end_exclusive:
        return []

    params: dict[str, Any] = {
        "geometry": polygon,
        "fields": ",".join(client.OCCURRENCE_FIELDS),
        "lastInterpreted": date_range_param(start, end_exclusive),
        "coordinateUncertaintyInMeters": f"0,{max_uncertainty_m}",
        "limit": page_size,
    }

    records: list[OccurrenceRecord] = []
    fetched = 0
    offset = 0
    while True:
        data = client.get_page(client.OCCURRENCE_SEARCH, params={**params, "offset": offset})
        results: list[Any] = data["results"]
        total: int = data["count"]

        fetched += len(results)
        for result in results:
            parsed = parse_occurrence(result) if isinstance(result, dict) else None
            if parsed is not None:
                records.append(parsed)

        if fetched >= total or not results:
            break

        offset += len(results)
        if offset >= client.MAX_OFFSET:
            logger.warning(
                "Occurrence search truncated at offset %d of %d for %s", offset, total, polygon
            )
            break

    logger.debug("Fetched %d occurrences (%d parsed) for %s", fetched, len(records), polygon)
    return records
