"""Exception types surfaced by the sync engine and lookups.

None of these are fatal to the application: the orchestrator and the
enrichment lookup catch them per operation and degrade to cached data or
absence.
"""

from __future__ import annotations


class BiodiversityNearbyError(Exception):
    """Base class for all project errors."""


class RemoteFetchFailed(BiodiversityNearbyError):
    """A remote request failed (non-2xx status or transport error).

    ``status`` is the HTTP status code, or None when no response arrived.
    """

    def __init__(self, status: int | None, url: str, detail: str = "") -> None:
        self.status = status
        self.url = url
        self.detail = detail
        msg = f"Request to {url} failed"
        msg += f" with status {status}" if status is not None else ""
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class MalformedResponse(RemoteFetchFailed):
    """A remote response arrived but its body could not be parsed."""


class MalformedCacheEntry(BiodiversityNearbyError):
    """A persisted cache value does not decode to the expected shape."""

    def __init__(self, key: str, detail: str = "") -> None:
        self.key = key
        super().__init__(f"Malformed cache entry {key!r}: {detail}" if detail else key)


class GeolocationUnavailable(BiodiversityNearbyError):
    """No current position could be established."""
