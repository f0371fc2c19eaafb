"""Wikidata Query Service (SPARQL) client.

Taxa are joined on P846 (GBIF taxon ID).

Docs: https://www.wikidata.org/wiki/Wikidata:SPARQL_query_service
"""

from __future__ import annotations

from typing import Any

from biodiversity_nearby.errors import MalformedResponse
from biodiversity_nearby.services.http import fetch_json

SPARQL_ENDPOINT = "https://query.wikidata.org/sparql"

# Wikidata properties
GBIF_TAXON_ID = "P846"
IMAGE = "P18"
AUDIO = "P51"
VIDEO = "P10"

MEDIA_QUERY = """\
SELECT ?item ?itemLabel ?image ?audio ?video WHERE {{
  ?item wdt:{gbif} "{taxon_id}" .
  OPTIONAL {{ ?item wdt:{image} ?image }}
  OPTIONAL {{ ?item wdt:{audio} ?audio }}
  OPTIONAL {{ ?item wdt:{video} ?video }}
  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "{language},en". }}
}}"""


def media_query(taxon_id: int, language: str = "en") -> str:
    """SPARQL selecting image/audio/video files for a GBIF taxon."""
    return MEDIA_QUERY.format(
        gbif=GBIF_TAXON_ID,
        taxon_id=int(taxon_id),
        image=IMAGE,
        audio=AUDIO,
        video=VIDEO,
        language=language,
    )


def run_query(query: str) -> list[dict[str, Any]]:
    """Run a SPARQL query and return ``results.bindings`` (possibly empty).

    Raises:
        RemoteFetchFailed: Transport error or non-2xx status.
        MalformedResponse: Body is not a SPARQL JSON result.
    """
    status, data = fetch_json(
        SPARQL_ENDPOINT,
        params={"query": query},
        headers={"Accept": "application/sparql-results+json"},
    )
    try:
        bindings = data["results"]["bindings"]
    except (KeyError, TypeError) as exc:
        raise MalformedResponse(status, SPARQL_ENDPOINT, "not a SPARQL result") from exc
    if not isinstance(bindings, list):
        raise MalformedResponse(status, SPARQL_ENDPOINT, "bindings is not a list")
    return bindings
