"""Biodiversity Nearby - GBIF occurrence records around you, cached per H3 cell.

Architecture::

    spatial.py     Viewport -> fixed-resolution H3 cells, cell -> WKT polygon
    datasources/   External APIs (GBIF occurrence search + species, Wikidata SPARQL)
    store.py       String key/value store (file-backed or in-memory)
    cache.py       Per-cell freshness watermark, delta fetch, dedup-by-id merge
    sync.py        Concurrent per-cell refresh with scale guard and failure isolation
    enrichment.py  Localized name + media for a selected record
    renderers/     Pure data -> marker payload / HTML map
    flows/         Prefect orchestration (locate, cover, refresh, render)
    services/      Shared utilities (HTTP client with retry)

Data flow: position -> spatial -> sync (-> cache -> datasources/store) -> renderers

Extension points - see each package's docstring:
  - New data source:   datasources/__init__.py
  - New UI module:     renderers/__init__.py
"""

__version__ = "0.1.0"
__author__ = "Michael Howden"

from biodiversity_nearby.config import Settings
from biodiversity_nearby.schemas import CellCacheEntry, OccurrenceRecord

__all__ = ["CellCacheEntry", "OccurrenceRecord", "Settings", "__version__"]
