"""
Prefect flow that syncs the occurrences around a position and renders the map.

Steps: locate -> viewport -> cover with H3 cells -> refresh cells -> write
``observations.json`` (marker payload) and ``index.html`` into the site dir.

Run locally:
    python -m biodiversity_nearby.flows.nearby

Run with Prefect dashboard:
    prefect server start &
    python -m biodiversity_nearby.flows.nearby
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from prefect import flow, task

from biodiversity_nearby import spatial
from biodiversity_nearby.cache import CellCacheStore
from biodiversity_nearby.config import get_settings
from biodiversity_nearby.geolocation import Position, provider_from_settings
from biodiversity_nearby.renderers.markers import build_markers
from biodiversity_nearby.renderers.occurrence_map import build_map_html
from biodiversity_nearby.schemas import BoundingBox
from biodiversity_nearby.store import FileStore, KeyValueStore
from biodiversity_nearby.sync import RefreshResult, SyncOrchestrator

# Persistent cell/name cache
store: KeyValueStore = FileStore(get_settings().data_dir)

MARKERS_FILE = "observations.json"
MAP_FILE = "index.html"


@task(name="locate", retries=1, retry_delay_seconds=2)
def locate(lat: float | None = None, lon: float | None = None) -> Position:
    """Explicit coordinates, else configured ones, else an IP lookup."""
    if lat is not None and lon is not None:
        return Position(lat=lat, lon=lon)
    return provider_from_settings(get_settings()).current_position()


@task(name="cover-viewport")
def cover_viewport(position: Position, radius_m: float) -> list[str]:
    """Cells covering a square viewport around the position, sorted."""
    bbox = BoundingBox.around(position.lat, position.lon, radius_m)
    return sorted(spatial.cover(bbox))


@task(name="refresh-cells")
def refresh_cells(cells: list[str]) -> RefreshResult:
    """Sync the visible cells and aggregate their records."""
    settings = get_settings()
    cache = CellCacheStore(store, max_uncertainty_m=settings.max_uncertainty_m)
    with SyncOrchestrator(
        cache,
        sync_threshold=settings.sync_threshold,
        max_workers=settings.max_workers,
    ) as orchestrator:
        return orchestrator.refresh(cells)


@task(name="save-site")
def save_site(result: RefreshResult, position: Position, site_dir: Path) -> Path:
    """Write the marker payload and the map page; returns the page path."""
    site_dir.mkdir(parents=True, exist_ok=True)

    markers_path = site_dir / MARKERS_FILE
    with markers_path.open("w") as f:
        json.dump(build_markers(result.records), f, indent=2)

    notes = [w.message for w in result.warnings]
    if result.degraded:
        notes.insert(0, "Zoomed out too far to sync; showing cached observations only.")

    map_path = site_dir / MAP_FILE
    map_path.write_text(
        build_map_html(result.records, (position.lat, position.lon), notes=notes),
        encoding="utf-8",
    )
    return map_path


@flow(name="sync-nearby", log_prints=True)
def sync_nearby(
    lat: float | None = None,
    lon: float | None = None,
    radius_m: float | None = None,
    site_dir: Path | None = None,
) -> dict[str, Any]:
    """
    Sync and render the occurrences around a position.

    Raises:
        GeolocationUnavailable: No position was given, configured or found.
    """
    settings = get_settings()
    radius_m = radius_m if radius_m is not None else settings.viewport_radius_m
    site_dir = site_dir if site_dir is not None else settings.site_dir

    position = locate(lat, lon)
    print(f"Position: ({position.lat:.5f}, {position.lon:.5f}), radius {radius_m:.0f} m")

    cells = cover_viewport(position, radius_m)
    print(f"Viewport covers {len(cells)} cells")

    result = refresh_cells(cells)
    if result.degraded:
        print(f"More than {settings.sync_threshold} cells visible; served from cache only.")
    for warning in result.warnings:
        print(f"Warning: {warning.message}")

    map_path = save_site(result, position, site_dir)
    print(f"Saved {len(result.records)} observations to {map_path}")

    return {
        "cells": len(cells),
        "records": len(result.records),
        "failed_cells": result.failed_cells,
        "degraded": result.degraded,
        "map_path": str(map_path),
    }


if __name__ == "__main__":
    summary = sync_nearby()
    print(f"Flow complete: {summary}")
