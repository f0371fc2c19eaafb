"""One-shot "where am I" lookup for the initial viewport.

Coarse and fast beats precise and slow here: the viewport only needs to land
in the right neighbourhood, so the IP lookup uses a short timeout and no
retries.  Without a position there is no initial viewport; callers show a
waiting state rather than failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import requests
from urllib3.util.retry import Retry

from biodiversity_nearby.errors import GeolocationUnavailable
from biodiversity_nearby.services.http import create_session

if TYPE_CHECKING:
    from biodiversity_nearby.config import Settings

IP_LOOKUP_URL = "https://ipapi.co/json/"
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class Position:
    """WGS84 position."""

    lat: float
    lon: float


class PositionProvider(Protocol):
    def current_position(self) -> Position: ...


@dataclass(frozen=True)
class StaticPosition:
    """A fixed, configured position."""

    position: Position

    def current_position(self) -> Position:
        return self.position


class IpGeolocation:
    """Approximate position of this machine from its public IP address."""

    def __init__(self, url: str = IP_LOOKUP_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.url = url
        self.session = create_session(retry=Retry(total=0), timeout=timeout)

    def current_position(self) -> Position:
        """
        Look up the current position once.

        Raises:
            GeolocationUnavailable: Request failed or returned no coordinates.
        """
        try:
            resp = self.session.get(self.url)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise GeolocationUnavailable(f"IP lookup failed: {exc}") from exc

        lat = data.get("latitude") if isinstance(data, dict) else None
        lon = data.get("longitude") if isinstance(data, dict) else None
        if not isinstance(lat, int | float) or not isinstance(lon, int | float):
            msg = "IP lookup returned no coordinates"
            raise GeolocationUnavailable(msg)
        return Position(lat=float(lat), lon=float(lon))


def provider_from_settings(settings: Settings) -> PositionProvider:
    """Configured coordinates win; otherwise fall back to the IP lookup."""
    if settings.lat is not None and settings.lon is not None:
        return StaticPosition(Position(lat=settings.lat, lon=settings.lon))
    return IpGeolocation(timeout=settings.geolocation_timeout)
