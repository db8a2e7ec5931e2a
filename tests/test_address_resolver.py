"""Unit tests for AddressResolver."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from cf_dns_updater.cli import AddressResolver, NetworkError


def test_current_address_returns_stripped_body() -> None:
    resolver = AddressResolver("https://ip.example", timeout_seconds=3)

    with patch.object(resolver._session, "get") as mock_get:
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock()
        mock_response.text = "203.0.113.7\n"
        mock_get.return_value = mock_response

        assert resolver.current_address() == "203.0.113.7"
        mock_get.assert_called_once_with("https://ip.example", timeout=3)


def test_current_address_defaults_to_ipify() -> None:
    resolver = AddressResolver()

    with patch.object(resolver._session, "get") as mock_get:
        mock_response = MagicMock()
        mock_response.text = "203.0.113.7"
        mock_get.return_value = mock_response

        resolver.current_address()

        assert mock_get.call_args[0][0] == "https://api.ipify.org"


def test_current_address_unreachable_raises_network_error() -> None:
    resolver = AddressResolver()

    with patch.object(resolver._session, "get") as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("Connection refused")

        with pytest.raises(NetworkError):
            resolver.current_address()

        assert mock_get.call_count == 1


def test_current_address_bad_status_raises_network_error() -> None:
    resolver = AddressResolver()

    with patch.object(resolver._session, "get") as mock_get:
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
        mock_get.return_value = mock_response

        with pytest.raises(NetworkError):
            resolver.current_address()


def test_current_address_empty_body_raises_network_error() -> None:
    resolver = AddressResolver()

    with patch.object(resolver._session, "get") as mock_get:
        mock_response = MagicMock()
        mock_response.text = "   "
        mock_get.return_value = mock_response

        with pytest.raises(NetworkError):
            resolver.current_address()
