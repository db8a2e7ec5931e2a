"""Unit tests for CloudflareClient."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from cf_dns_updater.cli import CloudflareClient, ProviderError

API = "https://api.cloudflare.com/client/v4"


def make_client() -> CloudflareClient:
    return CloudflareClient("me@example.com", "secret-key", timeout_seconds=5)


def make_response(data=None, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.ok = 200 <= status_code < 400
    response.status_code = status_code
    response.text = str(data)
    response.json.return_value = data
    return response


class TestCloudflareSession:
    """Tests for session setup."""

    def test_session_sends_auth_headers(self) -> None:
        client = make_client()

        headers = client._session.headers
        assert headers["X-Auth-Email"] == "me@example.com"
        assert headers["X-Auth-Key"] == "secret-key"
        assert headers["Content-Type"] == "application/json"

    def test_base_url_trailing_slash_is_stripped(self) -> None:
        client = CloudflareClient("me@example.com", "key", base_url="http://cf.local/v4/")

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response({"success": True, "result": []})

            client.find_zone("example.com")

            assert mock_get.call_args[0][0] == "http://cf.local/v4/zones"


class TestCloudflareConnection:
    """Tests for test_connection."""

    def test_test_connection_success(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response({"success": True, "result": {"id": "u1"}})

            assert client.test_connection() is True
            mock_get.assert_called_once_with(f"{API}/user", timeout=5)

    def test_test_connection_failure(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.side_effect = requests.exceptions.ConnectionError("Connection refused")

            assert client.test_connection() is False


class TestCloudflareFindZone:
    """Tests for find_zone."""

    def test_find_zone_returns_first_id(self) -> None:
        client = make_client()
        data = {
            "success": True,
            "result": [{"id": "zone-1", "name": "example.com"}, {"id": "zone-2"}],
        }

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response(data)

            assert client.find_zone("example.com") == "zone-1"
            mock_get.assert_called_once_with(
                f"{API}/zones", params={"name": "example.com"}, timeout=5
            )

    def test_find_zone_returns_none_when_no_match(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response({"success": True, "result": []})

            assert client.find_zone("missing.com") is None

    def test_find_zone_http_error_raises_provider_error(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response({"success": False}, status_code=403)

            with pytest.raises(ProviderError) as exc_info:
                client.find_zone("example.com")

            assert exc_info.value.status_code == 403
            assert "example.com" in str(exc_info.value)

    def test_find_zone_network_error_raises_provider_error(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.side_effect = requests.exceptions.Timeout("timed out")

            with pytest.raises(ProviderError):
                client.find_zone("example.com")

    def test_unsuccessful_body_raises_provider_error(self) -> None:
        """success=false is a failure even with a 200 status."""
        client = make_client()
        data = {"success": False, "errors": [{"code": 9109, "message": "Invalid access token"}]}

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response(data)

            with pytest.raises(ProviderError) as exc_info:
                client.find_zone("example.com")

            assert "9109" in str(exc_info.value)

    def test_invalid_json_raises_provider_error(self) -> None:
        client = make_client()
        response = make_response()
        response.json.side_effect = ValueError("No JSON object could be decoded")

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = response

            with pytest.raises(ProviderError):
                client.find_zone("example.com")


class TestCloudflareFindRecord:
    """Tests for find_record."""

    def test_find_record_queries_by_name_and_type(self) -> None:
        client = make_client()
        data = {"success": True, "result": [{"id": "rec-1", "name": "home.example.com"}]}

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response(data)

            assert client.find_record("zone-1", "home.example.com") == "rec-1"
            mock_get.assert_called_once_with(
                f"{API}/zones/zone-1/dns_records",
                params={"name": "home.example.com", "type": "A"},
                timeout=5,
            )

    def test_find_record_returns_none_when_no_match(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response({"success": True, "result": []})

            assert client.find_record("zone-1", "nope.example.com") is None

    def test_find_record_skips_malformed_result(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response({"success": True, "result": ["garbage"]})

            assert client.find_record("zone-1", "home.example.com") is None

    def test_find_record_failure_raises_provider_error(self) -> None:
        client = make_client()

        with patch.object(client._session, "get") as mock_get:
            mock_get.return_value = make_response(None, status_code=500)

            with pytest.raises(ProviderError) as exc_info:
                client.find_record("zone-1", "home.example.com")

            assert "home.example.com" in str(exc_info.value)


class TestCloudflareSetRecordAddress:
    """Tests for set_record_address."""

    def test_set_record_address_patches_record(self) -> None:
        client = make_client()

        with patch.object(client._session, "patch") as mock_patch:
            mock_patch.return_value = make_response({"success": True, "result": {"id": "rec-1"}})

            client.set_record_address("zone-1", "rec-1", "1.2.3.4")

            mock_patch.assert_called_once_with(
                f"{API}/zones/zone-1/dns_records/rec-1",
                json={"type": "A", "content": "1.2.3.4"},
                timeout=5,
            )

    def test_set_record_address_failure_names_record(self) -> None:
        client = make_client()

        with patch.object(client._session, "patch") as mock_patch:
            mock_patch.return_value = make_response({"success": False}, status_code=400)

            with pytest.raises(ProviderError) as exc_info:
                client.set_record_address("zone-1", "rec-1", "1.2.3.4")

            assert "rec-1" in str(exc_info.value)
