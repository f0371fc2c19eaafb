"""Spatial indexing: viewport <-> H3 cells.

The map area is partitioned into H3 cells at one fixed resolution, so two
overlapping viewports always share cell ids (and therefore cache entries).
Everything here is a pure function of its geographic input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import h3

if TYPE_CHECKING:
    from collections.abc import Sequence

    from biodiversity_nearby.schemas import BoundingBox

#: H3 resolution of every cache cell (~0.74 km² average area).
CELL_RESOLUTION = 8


def cover(bbox: BoundingBox, res: int = CELL_RESOLUTION) -> set[str]:
    """Return every cell at ``res`` that overlaps the box.

    Cells are included when they overlap the box at all, not only when their
    centre falls inside, so there are no gaps along the viewport edges.
    """
    shape = h3.LatLngPoly(bbox.corners())
    return set(h3.h3shape_to_cells_experimental(shape, res, contain="overlap"))


def cell_polygon(cell_id: str, *, closed: bool = True) -> list[tuple[float, float]]:
    """Boundary of a cell as counter-clockwise ``(lon, lat)`` pairs.

    Args:
        cell_id: H3 cell index string.
        closed: Repeat the first vertex at the end (WKT rings need this).

    Raises:
        ValueError: If ``cell_id`` is not a valid H3 cell.
    """
    if not h3.is_valid_cell(cell_id):
        msg = f"Not a valid H3 cell: {cell_id!r}"
        raise ValueError(msg)

    ring = [(lng, lat) for lat, lng in h3.cell_to_boundary(cell_id)]
    if _signed_area(ring) < 0:
        ring.reverse()
    if closed:
        ring.append(ring[0])
    return ring


def polygon_wkt(ring: Sequence[tuple[float, float]]) -> str:
    """Format a ``(lon, lat)`` ring as a WKT POLYGON, closing it if needed."""
    points = list(ring)
    if len(points) < 3:
        msg = "A polygon ring needs at least three points"
        raise ValueError(msg)
    if points[0] != points[-1]:
        points.append(points[0])
    coords = ", ".join(f"{lon} {lat}" for lon, lat in points)
    return f"POLYGON(({coords}))"


def _signed_area(ring: Sequence[tuple[float, float]]) -> float:
    """Shoelace area; positive for counter-clockwise rings."""
    total = 0.0
    for (x1, y1), (x2, y2) in zip(ring, [*ring[1:], ring[0]], strict=True):
        total += x1 * y2 - x2 * y1
    return total / 2
