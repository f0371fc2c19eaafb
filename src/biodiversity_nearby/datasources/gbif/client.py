"""GBIF API client constants and the shared JSON GET helper.

API docs:
  - Occurrence search: https://techdocs.gbif.org/en/openapi/v1/occurrence
  - Species: https://techdocs.gbif.org/en/openapi/v1/species
"""

from __future__ import annotations

from typing import Any

from biodiversity_nearby.errors import MalformedResponse
from biodiversity_nearby.services.http import fetch_json

API_BASE = "https://api.gbif.org/v1"
OCCURRENCE_SEARCH = f"{API_BASE}/occurrence/search"
SPECIES = f"{API_BASE}/species"

# Page size for occurrence search (GBIF allows up to 300).
PAGE_SIZE = 300

# GBIF refuses offsets beyond this; larger result sets need the download API.
MAX_OFFSET = 100_000

# Fields we keep from each occurrence result.
OCCURRENCE_FIELDS = [
    "key",
    "scientificName",
    "taxonKey",
    "decimalLatitude",
    "decimalLongitude",
    "eventDate",
    "basisOfRecord",
    "kingdom",
]


def get_json(url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """GET a GBIF endpoint and return the decoded JSON object.

    Raises:
        RemoteFetchFailed: Transport error or non-2xx status (after retries).
        MalformedResponse: Body is not a JSON object.
    """
    status, data = fetch_json(url, params=params)
    if not isinstance(data, dict):
        raise MalformedResponse(status, url, "expected a JSON object")
    return data


def get_page(url: str, params: dict[str, Any]) -> dict[str, Any]:
    """GET one page of a GBIF search: an object with ``results`` and ``count``.

    Raises:
        RemoteFetchFailed: Transport error or non-2xx status (after retries).
        MalformedResponse: Body lacks a ``results`` list or an integer ``count``.
    """
    status, data = fetch_json(url, params=params)
    if (
        not isinstance(data, dict)
        or not isinstance(data.get("results"), list)
        or not isinstance(data.get("count"), int)
    ):
        raise MalformedResponse(status, url, "missing results/count")
    return data
