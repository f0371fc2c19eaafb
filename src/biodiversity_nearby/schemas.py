"""
Domain models for biodiversity nearby.

Pydantic models for data from external APIs and internal processing.
These define the canonical schema - datasources normalize API responses to these,
and the cell cache persists them as JSON.
"""

from __future__ import annotations

import math
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

#: Watermark of a cell that has never been synced.
EPOCH = date(1970, 1, 1)

_METERS_PER_DEGREE_LAT = 111_320.0


# =============================================================================
# Geographic
# =============================================================================


class BoundingBox(BaseModel):
    """Geographic bounding box for a viewport."""

    south: float = Field(..., ge=-90, le=90)
    west: float = Field(..., ge=-180, le=180)
    north: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_order(self) -> BoundingBox:
        if self.south > self.north:
            msg = f"south ({self.south}) is north of north ({self.north})"
            raise ValueError(msg)
        if self.west > self.east:
            msg = "boxes crossing the antimeridian are not supported"
            raise ValueError(msg)
        return self

    @classmethod
    def around(cls, lat: float, lon: float, radius_m: float) -> BoundingBox:
        """Square box of half-width ``radius_m`` centred on a position."""
        dlat = radius_m / _METERS_PER_DEGREE_LAT
        dlon = radius_m / (_METERS_PER_DEGREE_LAT * max(math.cos(math.radians(lat)), 1e-6))
        return cls(
            south=max(lat - dlat, -90.0),
            west=max(lon - dlon, -180.0),
            north=min(lat + dlat, 90.0),
            east=min(lon + dlon, 180.0),
        )

    def corners(self) -> list[tuple[float, float]]:
        """(lat, lon) corners in SW, NW, NE, SE order."""
        return [
            (self.south, self.west),
            (self.north, self.west),
            (self.north, self.east),
            (self.south, self.east),
        ]


# =============================================================================
# Occurrences
# =============================================================================


class OccurrenceRecord(BaseModel):
    """One GBIF occurrence, reduced to what the map needs. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="GBIF occurrence key")
    scientific_name: str
    taxon_id: int | None = Field(default=None, description="GBIF taxon key")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    observed_at: date | None = None
    basis_of_record: str = "UNKNOWN"
    kingdom: str | None = None


class CellCacheEntry(BaseModel):
    """Persisted state of one H3 cell: watermark plus records unique by id."""

    last_synced_through: date = EPOCH
    records: list[OccurrenceRecord] = Field(default_factory=list)

    @field_validator("records")
    @classmethod
    def _unique_ids(cls, records: list[OccurrenceRecord]) -> list[OccurrenceRecord]:
        seen: set[int] = set()
        unique: list[OccurrenceRecord] = []
        for record in records:
            if record.id in seen:
                continue
            seen.add(record.id)
            unique.append(record)
        return unique

    @classmethod
    def empty(cls) -> CellCacheEntry:
        """Entry for a cell that has never been synced."""
        return cls(last_synced_through=EPOCH, records=[])


# =============================================================================
# Enrichment
# =============================================================================


class MediaKind(StrEnum):
    """Media types offered for a taxon, in display order."""

    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class MediaItem(BaseModel):
    """A single media file for a taxon."""

    url: str
    kind: MediaKind
    label: str | None = None


class SelectionDetails(BaseModel):
    """Display payload for a selected occurrence."""

    record: OccurrenceRecord
    localized_name: str | None = None
    media: list[MediaItem] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
