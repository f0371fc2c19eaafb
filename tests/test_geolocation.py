"""Tests for the initial position lookup."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
import requests

from biodiversity_nearby.config import Settings
from biodiversity_nearby.errors import GeolocationUnavailable
from biodiversity_nearby.geolocation import (
    IP_LOOKUP_URL,
    IpGeolocation,
    Position,
    StaticPosition,
    provider_from_settings,
)


def _response(payload: object) -> Mock:
    resp = Mock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = payload
    return resp


class TestIpGeolocation:
    """Test the IP based lookup."""

    def test_position(self) -> None:
        geo = IpGeolocation()
        resp = _response({"latitude": 52.37, "longitude": 4.89})
        with patch.object(geo.session, "get", return_value=resp) as mock_get:
            assert geo.current_position() == Position(lat=52.37, lon=4.89)
        mock_get.assert_called_once_with(IP_LOOKUP_URL)

    def test_no_retries(self) -> None:
        adapter = IpGeolocation().session.get_adapter("https://")
        assert adapter.max_retries.total == 0

    def test_transport_error(self) -> None:
        geo = IpGeolocation()
        with patch.object(geo.session, "get", side_effect=requests.ConnectionError("offline")):
            with pytest.raises(GeolocationUnavailable, match="offline"):
                geo.current_position()

    def test_http_error(self) -> None:
        geo = IpGeolocation()
        resp = _response({})
        resp.raise_for_status.side_effect = requests.HTTPError("429 Too Many Requests")
        with patch.object(geo.session, "get", return_value=resp):
            with pytest.raises(GeolocationUnavailable):
                geo.current_position()

    def test_missing_coordinates(self) -> None:
        geo = IpGeolocation()
        resp = _response({"error": True, "reason": "RateLimited"})
        with patch.object(geo.session, "get", return_value=resp):
            with pytest.raises(GeolocationUnavailable, match="no coordinates"):
                geo.current_position()

    def test_not_json(self) -> None:
        geo = IpGeolocation()
        resp = _response(None)
        resp.json.side_effect = ValueError("Expecting value")
        with patch.object(geo.session, "get", return_value=resp):
            with pytest.raises(GeolocationUnavailable):
                geo.current_position()


class TestProviderFromSettings:
    """Test choosing the position provider."""

    def test_configured_position(self) -> None:
        provider = provider_from_settings(Settings(lat=10.0, lon=20.0))
        assert isinstance(provider, StaticPosition)
        assert provider.current_position() == Position(lat=10.0, lon=20.0)

    def test_falls_back_to_ip_lookup(self) -> None:
        provider = provider_from_settings(Settings(lat=None, lon=None, geolocation_timeout=2.0))
        assert isinstance(provider, IpGeolocation)

    def test_half_configured_uses_ip_lookup(self) -> None:
        assert isinstance(provider_from_settings(Settings(lat=10.0, lon=None)), IpGeolocation)
