"""Static Leaflet page showing the synced occurrences."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from biodiversity_nearby.renderers import render_template
from biodiversity_nearby.renderers.markers import KINGDOM_COLORS, build_markers

if TYPE_CHECKING:
    from collections.abc import Sequence

    from biodiversity_nearby.schemas import OccurrenceRecord

# GBIF natural-style basemap
TILE_URL = "https://tile.gbif.org/3857/omt/{z}/{x}/{y}@1x.png"
ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap contributors</a>, '
    '<a href="https://www.gbif.org">GBIF</a>'
)
DEFAULT_ZOOM = 16


def build_map_html(
    records: Sequence[OccurrenceRecord],
    center: tuple[float, float],
    *,
    zoom: int = DEFAULT_ZOOM,
    notes: Sequence[str] = (),
) -> str:
    """Render a full HTML page with one marker per record.

    Args:
        records: Occurrences to plot, in render order.
        center: (lat, lon) of the initial view.
        zoom: Initial zoom level.
        notes: Short status lines shown under the map (e.g. failed cells).
    """
    markers: list[dict[str, Any]] = build_markers(records)
    return render_template(
        "occurrence_map.html.j2",
        center_lat=center[0],
        center_lon=center[1],
        zoom=zoom,
        tile_url=TILE_URL,
        attribution=ATTRIBUTION,
        # Inlined into a <script> block; keep "</" from closing it early.
        markers_json=json.dumps(markers).replace("</", "<\\/"),
        marker_count=len(markers),
        legend=KINGDOM_COLORS,
        notes=list(notes),
    )
