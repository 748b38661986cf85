"""Tests for the Unpaywall OA verifier."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from oa_discovery.models.schemas import OAStatus
from oa_discovery.services.oa_verifier import OAVerifier


def _ok_response(data):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = data
    response.raise_for_status = MagicMock()
    return response


def _error_response(status: int):
    request = httpx.Request("GET", "https://api.unpaywall.org/v2/x")
    response = httpx.Response(status, request=request)
    mock = MagicMock()
    mock.raise_for_status = MagicMock(
        side_effect=httpx.HTTPStatusError("error", request=request, response=response)
    )
    return mock


@pytest.fixture
def verifier(memory_cache):
    return OAVerifier(memory_cache, email="test@example.com")


class TestOAStatus:
    """Tests for OAStatus parsing."""

    def test_from_unpaywall(self, unpaywall_record):
        status = OAStatus.from_unpaywall(unpaywall_record)
        assert status.is_oa is True
        assert status.best_pdf_url == "https://example.org/quantum.pdf"
        assert status.journal_name == "Journal of Quantum Research"
        assert status.is_accessible

    def test_no_best_location(self):
        status = OAStatus.from_unpaywall({"is_oa": True, "best_oa_location": None})
        assert status.best_pdf_url is None
        assert not status.is_accessible

    def test_closed_access(self):
        status = OAStatus.from_unpaywall(
            {"is_oa": False, "best_oa_location": {"url_for_pdf": "https://x/y.pdf"}}
        )
        assert not status.is_accessible


class TestCheckOA:
    """Tests for OAVerifier.check_oa."""

    @pytest.mark.asyncio
    async def test_empty_doi_returns_none(self, verifier):
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock()
            assert await verifier.check_oa("") is None
            assert await verifier.check_oa(None) is None
            mock_http.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_is_cached_verbatim(self, verifier, memory_cache, unpaywall_record):
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock(return_value=_ok_response(unpaywall_record))
            status = await verifier.check_oa("10.1234/quantum.2024")

        assert status.is_accessible
        assert memory_cache.store["unpaywall_10.1234_quantum.2024"] == unpaywall_record

    @pytest.mark.asyncio
    async def test_cache_hit_skips_network(self, verifier, memory_cache, unpaywall_record):
        memory_cache.store["unpaywall_10.1234_quantum.2024"] = unpaywall_record
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock()
            status = await verifier.check_oa("10.1234/quantum.2024")
            mock_http.get.assert_not_called()
        assert status.title == "Quantum Computing and NP-Complete Problems"

    @pytest.mark.asyncio
    async def test_request_targets_unpaywall(self, verifier, unpaywall_record):
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock(return_value=_ok_response(unpaywall_record))
            await verifier.check_oa("10.1234/quantum.2024")

        url = mock_http.get.call_args.args[0]
        assert url == "https://api.unpaywall.org/v2/10.1234%2Fquantum.2024"
        assert mock_http.get.call_args.kwargs["params"] == {"email": "test@example.com"}

    @pytest.mark.asyncio
    async def test_http_error_returns_none_and_is_not_cached(self, verifier, memory_cache):
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock(return_value=_error_response(404))
            assert await verifier.check_oa("10.1234/missing") is None
        assert memory_cache.store == {}

    @pytest.mark.asyncio
    async def test_failure_is_retried_on_next_call(self, verifier, memory_cache, unpaywall_record):
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock(
                side_effect=[httpx.ConnectError("down"), _ok_response(unpaywall_record)]
            )
            first = await verifier.check_oa("10.1234/quantum.2024")
            assert memory_cache.store == {}
            second = await verifier.check_oa("10.1234/quantum.2024")

        assert first is None
        assert second.is_accessible
        assert mock_http.get.call_count == 2

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, verifier):
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
            assert await verifier.check_oa("10.1234/slow") is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self, verifier, memory_cache):
        response = _ok_response(None)
        response.json.side_effect = ValueError("not json")
        with patch.object(verifier, "_http_client") as mock_http:
            mock_http.get = AsyncMock(return_value=response)
            assert await verifier.check_oa("10.1234/garbled") is None
        assert memory_cache.store == {}
