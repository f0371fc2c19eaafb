"""
Tests for CLI functionality.

These tests verify the command-line interface logic.
"""

from __future__ import annotations

import argparse
import json
import unittest.mock
from io import StringIO
from typing import TYPE_CHECKING
from unittest.mock import patch

if TYPE_CHECKING:
    from pathlib import Path

import pytest

from biodiversity_nearby.cli import (
    cmd_describe,
    cmd_info,
    cmd_refresh,
    cmd_serve,
    create_parser,
    main,
    positive_float,
)
from biodiversity_nearby.errors import GeolocationUnavailable, RemoteFetchFailed
from biodiversity_nearby.schemas import MediaItem, MediaKind


def _mock_server() -> unittest.mock.MagicMock:
    server = unittest.mock.MagicMock()
    server.__enter__ = unittest.mock.Mock(return_value=server)
    server.__exit__ = unittest.mock.Mock(return_value=False)
    server.serve_forever = unittest.mock.Mock(side_effect=KeyboardInterrupt)
    return server


class TestCreateParser:
    """Tests for create_parser function."""

    def test_creates_parser(self) -> None:
        """Parser is created successfully."""
        parser = create_parser()
        assert isinstance(parser, argparse.ArgumentParser)
        assert parser.prog == "biodiversity-nearby"

    def test_parser_has_version(self) -> None:
        """Parser has version argument."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--version"])

    def test_parser_has_debug_flag(self) -> None:
        """Parser accepts --debug flag."""
        parser = create_parser()
        args = parser.parse_args(["--debug", "info"])
        assert args.debug is True

    def test_parser_refresh_defaults(self) -> None:
        """Refresh leaves position and radius to settings."""
        args = create_parser().parse_args(["refresh"])
        assert args.command == "refresh"
        assert (args.lat, args.lon, args.radius) == (None, None, None)

    def test_parser_refresh_position(self) -> None:
        """Refresh accepts an explicit position."""
        args = create_parser().parse_args(
            ["refresh", "--lat", "52.37", "--lon", "4.89", "--radius", "250"]
        )
        assert (args.lat, args.lon, args.radius) == (52.37, 4.89, 250.0)

    @pytest.mark.parametrize("radius", ["0", "-5", "nan", "inf", "wide"])
    def test_parser_refresh_rejects_bad_radius(self, radius: str) -> None:
        """A radius that can't describe a viewport is a usage error, not a traceback."""
        with patch("sys.stderr", new=StringIO()) as mock_stderr, pytest.raises(SystemExit) as exc:
            create_parser().parse_args(["refresh", "--radius", radius])

        assert exc.value.code == 2
        assert "--radius" in mock_stderr.getvalue()

    def test_positive_float(self) -> None:
        assert positive_float("0.5") == 0.5
        with pytest.raises(argparse.ArgumentTypeError, match="positive"):
            positive_float("-1")

    def test_parser_describe_command(self) -> None:
        """Describe takes an integer taxon id."""
        args = create_parser().parse_args(["describe", "5231190"])
        assert args.command == "describe"
        assert args.taxon_id == 5231190

    def test_parser_describe_rejects_non_integer(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["describe", "sparrow"])

    def test_parser_serve_with_port(self) -> None:
        """Parser accepts serve --port."""
        args = create_parser().parse_args(["serve", "--port", "3000"])
        assert args.port == 3000


class TestCmdInfo:
    """Tests for cmd_info function."""

    def test_prints_app_info(self) -> None:
        """Info command prints application information."""
        with patch("sys.stdout", new=StringIO()) as mock_stdout:
            exit_code = cmd_info(argparse.Namespace())
            output = mock_stdout.getvalue()

        assert exit_code == 0
        assert "Application" in output
        assert "Sync threshold" in output


class TestCmdRefresh:
    """Tests for cmd_refresh function."""

    def test_returns_zero(self) -> None:
        """Refresh command returns exit code 0 and passes the position on."""
        args = argparse.Namespace(lat=52.37, lon=4.89, radius=300.0)

        with patch("biodiversity_nearby.cli.sync_nearby") as mock_flow:
            mock_flow.return_value = {
                "cells": 4, "records": 12, "failed_cells": [], "degraded": False
            }

            exit_code = cmd_refresh(args)

        assert exit_code == 0
        mock_flow.assert_called_once_with(lat=52.37, lon=4.89, radius_m=300.0)

    def test_reports_failed_cells(self) -> None:
        args = argparse.Namespace(lat=None, lon=None, radius=None)

        with (
            patch("biodiversity_nearby.cli.sync_nearby") as mock_flow,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            mock_flow.return_value = {
                "cells": 3, "records": 5, "failed_cells": ["a"], "degraded": False
            }
            exit_code = cmd_refresh(args)

        assert exit_code == 0
        assert "1 cell(s) served from cache" in mock_stdout.getvalue()

    def test_no_location_waits(self) -> None:
        """Without a position the command reports the waiting state."""
        args = argparse.Namespace(lat=None, lon=None, radius=None)

        with (
            patch(
                "biodiversity_nearby.cli.sync_nearby", side_effect=GeolocationUnavailable("offline")
            ),
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            exit_code = cmd_refresh(args)

        assert exit_code == 1
        assert "Waiting for user location" in mock_stderr.getvalue()


class TestCmdDescribe:
    """Tests for cmd_describe function."""

    def test_prints_name_and_media(self) -> None:
        args = argparse.Namespace(taxon_id=5231190)

        with (
            patch("biodiversity_nearby.cli.EnrichmentLookup") as mock_lookup,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            mock_lookup.return_value.localized_name.return_value = "House Sparrow"
            mock_lookup.return_value.media.return_value = [
                MediaItem(url="https://commons.wikimedia.org/p.jpg", kind=MediaKind.IMAGE)
            ]
            exit_code = cmd_describe(args)

        assert exit_code == 0
        payload = json.loads(mock_stdout.getvalue())
        assert payload["name"] == "House Sparrow"
        assert payload["media"][0]["kind"] == "image"

    def test_no_media(self) -> None:
        args = argparse.Namespace(taxon_id=1)

        with (
            patch("biodiversity_nearby.cli.EnrichmentLookup") as mock_lookup,
            patch("sys.stdout", new=StringIO()),
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            mock_lookup.return_value.localized_name.return_value = None
            mock_lookup.return_value.media.return_value = []
            exit_code = cmd_describe(args)

        assert exit_code == 0
        assert "No media found." in mock_stderr.getvalue()

    def test_media_failure_still_prints_name(self) -> None:
        args = argparse.Namespace(taxon_id=5231190)

        with (
            patch("biodiversity_nearby.cli.EnrichmentLookup") as mock_lookup,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
            patch("sys.stderr", new=StringIO()),
        ):
            mock_lookup.return_value.localized_name.return_value = "House Sparrow"
            mock_lookup.return_value.media.side_effect = RemoteFetchFailed(
                503, "https://query.wikidata.org/sparql"
            )
            exit_code = cmd_describe(args)

        assert exit_code == 1
        assert json.loads(mock_stdout.getvalue())["name"] == "House Sparrow"


class TestCmdServe:
    """Tests for cmd_serve function."""

    def test_missing_site_dir_returns_one(self, tmp_path: Path) -> None:
        """Serve returns 1 when the site directory doesn't exist."""
        args = argparse.Namespace(port=8080)

        with patch("biodiversity_nearby.cli.get_settings") as mock_settings:
            mock_settings.return_value.site_dir = tmp_path / "no-such-dir"
            exit_code = cmd_serve(args)

        assert exit_code == 1

    def test_uses_port_from_args(self, tmp_path: Path) -> None:
        """Serve uses --port when provided."""
        args = argparse.Namespace(port=9999)

        with (
            patch("biodiversity_nearby.cli.get_settings") as mock_settings,
            patch(
                "biodiversity_nearby.cli.http.server.HTTPServer", return_value=_mock_server()
            ) as mock_ctor,
        ):
            mock_settings.return_value.site_dir = tmp_path
            cmd_serve(args)

        mock_ctor.assert_called_once()
        assert mock_ctor.call_args[0][0] == ("", 9999)
        assert mock_ctor.call_args[0][1].keywords["directory"] == str(tmp_path)

    def test_uses_port_from_settings_when_none(self, tmp_path: Path) -> None:
        """Serve falls back to api_port from settings."""
        args = argparse.Namespace(port=None)

        with (
            patch("biodiversity_nearby.cli.get_settings") as mock_settings,
            patch(
                "biodiversity_nearby.cli.http.server.HTTPServer", return_value=_mock_server()
            ) as mock_ctor,
        ):
            mock_settings.return_value.site_dir = tmp_path
            mock_settings.return_value.api_port = 5555
            cmd_serve(args)

        assert mock_ctor.call_args[0][0] == ("", 5555)


class TestMain:
    """Tests for main function."""

    def test_no_command_shows_help(self) -> None:
        """No command shows help and exits 0."""
        with patch("sys.argv", ["biodiversity-nearby"]):
            assert main() == 0

    @pytest.mark.parametrize(
        ("argv", "handler"),
        [
            (["info"], "cmd_info"),
            (["refresh"], "cmd_refresh"),
            (["describe", "42"], "cmd_describe"),
            (["serve"], "cmd_serve"),
        ],
    )
    def test_dispatches_command(self, argv: list[str], handler: str) -> None:
        with (
            patch("sys.argv", ["biodiversity-nearby", *argv]),
            patch(f"biodiversity_nearby.cli.{handler}") as mock_cmd,
        ):
            mock_cmd.return_value = 0
            exit_code = main()

        assert exit_code == 0
        mock_cmd.assert_called_once()

    def test_unknown_command_shows_help(self) -> None:
        """Unknown command shows help and returns 1."""
        with (
            patch("sys.argv", ["biodiversity-nearby", "info"]),
            patch("biodiversity_nearby.cli.create_parser") as mock_parser,
        ):
            mock_parser.return_value.parse_args.return_value = argparse.Namespace(
                command="unknown", debug=False
            )
            exit_code = main()
            assert exit_code == 1
