"""GBIF data source: occurrence search and species names.

Public API:
  - client: endpoint constants, ``get_json`` and ``get_page`` (typed failures)
  - occurrences: search_occurrences, parse_occurrence, date_range_param
  - species: fetch_vernacular_name
"""

from biodiversity_nearby.datasources.gbif.client import PAGE_SIZE
from biodiversity_nearby.datasources.gbif.occurrences import (
    date_range_param,
    parse_occurrence,
    search_occurrences,
)
from biodiversity_nearby.datasources.gbif.species import fetch_vernacular_name

__all__ = [
    "PAGE_SIZE",
    "date_range_param",
    "fetch_vernacular_name",
    "parse_occurrence",
    "search_occurrences",
]
