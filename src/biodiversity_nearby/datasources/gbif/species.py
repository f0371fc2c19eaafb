"""Vernacular (common) names for a GBIF taxon."""

from __future__ import annotations

from typing import Any

from biodiversity_nearby.datasources.gbif import client


def _pick_name(results: list[dict[str, Any]], language: str) -> str | None:
    """First preferred name in ``language``, else the first one in it."""
    matching = [
        r for r in results if r.get("language") == language and r.get("vernacularName")
    ]
    if not matching:
        return None
    preferred = [r for r in matching if r.get("preferred")]
    chosen = (preferred or matching)[0]
    name: str = chosen["vernacularName"]
    return name.strip() or None


def fetch_vernacular_name(taxon_id: int, language: str = "eng") -> str | None:
    """
    Fetch the common name of a taxon in one language.

    Args:
        taxon_id: GBIF taxon key.
        language: ISO 639-2 language code as used by GBIF (``eng``, ``deu``...).

    Returns:
        The name, or None when GBIF has none in that language.

    Raises:
        RemoteFetchFailed: The request failed.
    """
    data = client.get_json(
        f"{client.SPECIES}/{taxon_id}/vernacularNames",
        params={"limit": 1000},
    )
    results = data.get("results") or []
    return _pick_name([r for r in results if isinstance(r, dict)], language)
