"""Marker payload for the map: one point per occurrence, colored by kingdom."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from biodiversity_nearby.schemas import OccurrenceRecord

KINGDOM_COLORS = {
    "Plantae": "#228B22",  # forest green
    "Animalia": "#4682B4",  # steel blue
    "Fungi": "#D2691E",  # chocolate
}
DEFAULT_COLOR = "#A9A9A9"  # dark gray


def kingdom_color(kingdom: str | None) -> str:
    """Marker color for a kingdom; gray for anything else."""
    return KINGDOM_COLORS.get(kingdom or "", DEFAULT_COLOR)


def marker_key(record: OccurrenceRecord) -> str:
    """Stable marker key derived from the occurrence id."""
    return f"marker-{record.id}"


def build_markers(records: Iterable[OccurrenceRecord]) -> list[dict[str, Any]]:
    """Ordered, JSON-ready markers for the map widget."""
    return [
        {
            "key": marker_key(r),
            "id": r.id,
            "lat": r.latitude,
            "lon": r.longitude,
            "color": kingdom_color(r.kingdom),
            "kingdom": r.kingdom,
            "scientific_name": r.scientific_name,
            "taxon_id": r.taxon_id,
            "year": r.observed_at.year if r.observed_at else None,
        }
        for r in records
    ]
