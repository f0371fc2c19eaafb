"""Name and media lookup for a selected occurrence.

Independent of the cell cache: triggered when a record is selected on the
map, keyed by the record's GBIF taxon id.

- Localized names are cached forever in the key/value store (names rarely
  change); a taxon without a name is cached as an empty string.
- Media lists are fetched on every call and never cached.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from biodiversity_nearby.datasources.gbif import fetch_vernacular_name
from biodiversity_nearby.datasources.wikidata import fetch_taxon_media
from biodiversity_nearby.errors import RemoteFetchFailed
from biodiversity_nearby.schemas import MediaItem, MediaKind, OccurrenceRecord, SelectionDetails

if TYPE_CHECKING:
    from biodiversity_nearby.store import KeyValueStore

logger = logging.getLogger(__name__)

NameFn = Callable[[int, str], str | None]
MediaFn = Callable[[int, str], list[MediaItem]]

_KIND_ORDER = {MediaKind.IMAGE: 0, MediaKind.AUDIO: 1, MediaKind.VIDEO: 2}

# GBIF uses ISO 639-2 codes, Wikidata labels use ISO 639-1.
_WIKIDATA_LANGUAGE = {
    "eng": "en",
    "deu": "de",
    "fra": "fr",
    "spa": "es",
    "nld": "nl",
    "ita": "it",
    "por": "pt",
    "swe": "sv",
    "dan": "da",
    "nor": "no",
    "fin": "fi",
    "pol": "pl",
    "jpn": "ja",
    "zho": "zh",
}


def name_key(taxon_id: int, language: str) -> str:
    """Store key for a cached localized name."""
    return f"name:{taxon_id}:{language}"


def secure_url(url: str) -> str:
    """Rewrite an ``http://`` URL to ``https://``."""
    if url.startswith("http://"):
        return "https://" + url[len("http://") :]
    return url


def normalize_media(items: Iterable[MediaItem]) -> list[MediaItem]:
    """Secure URLs and order images, then audio, then video.

    The sort is stable, so items of one kind keep their source order.
    """
    secured = [item.model_copy(update={"url": secure_url(item.url)}) for item in items]
    return sorted(secured, key=lambda item: _KIND_ORDER[item.kind])


class EnrichmentLookup:
    """Localized names (cached) and media (live) for a taxon."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        language: str = "eng",
        fetch_name: NameFn = fetch_vernacular_name,
        fetch_media: MediaFn = fetch_taxon_media,
    ) -> None:
        self.store = store
        self.language = language
        self.fetch_name = fetch_name
        self.fetch_media = fetch_media

    def localized_name(self, taxon_id: int) -> str | None:
        """
        Common name of a taxon in the configured language.

        Raises:
            RemoteFetchFailed: The lookup failed; nothing is cached.
        """
        key = name_key(taxon_id, self.language)
        cached = self.store.get(key)
        if cached is not None:
            return cached or None

        name = self.fetch_name(taxon_id, self.language)
        self.store.set(key, name or "")
        return name

    def media(self, taxon_id: int) -> list[MediaItem]:
        """
        Media for a taxon, normalized; empty when none is known.

        Raises:
            RemoteFetchFailed: The lookup failed (transport or parse).
        """
        language = _WIKIDATA_LANGUAGE.get(self.language, "en")
        return normalize_media(self.fetch_media(taxon_id, language))

    def describe(self, record: OccurrenceRecord) -> SelectionDetails:
        """Popup payload for a selected record.

        Each lookup fails on its own: a failure becomes a warning and the
        other lookup's result is still returned.
        """
        details = SelectionDetails(record=record)
        if record.taxon_id is None:
            return details

        try:
            details.localized_name = self.localized_name(record.taxon_id)
        except RemoteFetchFailed as exc:
            logger.warning("Name lookup failed for taxon %s: %s", record.taxon_id, exc)
            details.warnings.append(f"name: {exc}")

        try:
            details.media = self.media(record.taxon_id)
        except RemoteFetchFailed as exc:
            logger.warning("Media lookup failed for taxon %s: %s", record.taxon_id, exc)
            details.warnings.append(f"media: {exc}")

        return details
