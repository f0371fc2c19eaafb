"""Wikidata linked-data source for taxon media.

Public API:
  - client: SPARQL endpoint, property ids, media_query, run_query
  - media: fetch_taxon_media, parse_media_bindings
"""

from biodiversity_nearby.datasources.wikidata.media import (
    fetch_taxon_media,
    parse_media_bindings,
)

__all__ = ["fetch_taxon_media", "parse_media_bindings"]
