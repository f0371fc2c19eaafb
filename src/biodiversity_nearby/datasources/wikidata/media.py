"""Taxon media (images, sounds, videos) from Wikidata."""

from __future__ import annotations

from typing import Any

from biodiversity_nearby.datasources.wikidata import client
from biodiversity_nearby.schemas import MediaItem, MediaKind

# Binding variable -> media kind, in the order they are read from a row.
_VARIABLES = [
    ("image", MediaKind.IMAGE),
    ("audio", MediaKind.AUDIO),
    ("video", MediaKind.VIDEO),
]


def _value(binding: dict[str, Any], name: str) -> str | None:
    cell = binding.get(name)
    if not isinstance(cell, dict):
        return None
    value = cell.get("value")
    return value if isinstance(value, str) and value else None


def parse_media_bindings(bindings: list[dict[str, Any]]) -> list[MediaItem]:
    """Flatten SPARQL rows into media items in source order.

    OPTIONAL clauses multiply rows, so the same file can appear many times;
    only its first occurrence is kept.
    """
    items: list[MediaItem] = []
    seen: set[str] = set()
    for binding in bindings:
        label = _value(binding, "itemLabel")
        for name, kind in _VARIABLES:
            url = _value(binding, name)
            if url is None or url in seen:
                continue
            seen.add(url)
            items.append(MediaItem(url=url, kind=kind, label=label))
    return items


def fetch_taxon_media(taxon_id: int, language: str = "en") -> list[MediaItem]:
    """
    Fetch media files linked to a GBIF taxon on Wikidata.

    Returns an empty list when no Wikidata item matches the taxon.

    Raises:
        RemoteFetchFailed: The query request failed.
        MalformedResponse: The response could not be parsed.
    """
    bindings = client.run_query(client.media_query(taxon_id, language))
    return parse_media_bindings([b for b in bindings if isinstance(b, dict)])
