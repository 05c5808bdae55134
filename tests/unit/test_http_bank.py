"""
Unit tests for the HTTP item bank.
"""

import pytest
import pytest_asyncio
from httpx import ConnectError, Request, Response, TimeoutException

from prepdeck.bank.http_bank import HttpItemBank
from prepdeck.bank.provider import ItemFilter
from prepdeck.engine.errors import BankUnavailable
from prepdeck.engine.models import SessionKind


@pytest.fixture
def mcq_payload():
    """Sample bank response."""
    return {
        "items": [
            {"id": "a", "question": "What is a deadlock?", "options": ["w", "x", "y", "z"], "correct": 2},
            {"id": "b", "question": "What is a mutex?", "options": ["w", "x", "y", "z"], "correct": 0},
        ]
    }


@pytest.fixture
def item_filter():
    return ItemFilter(kind=SessionKind.MCQ, category="Concurrency", limit=10)


@pytest_asyncio.fixture
async def bank():
    """Bank client with no backoff delay."""
    bank = HttpItemBank(
        "http://bank.test/api/",
        api_key="secret",
        retry_attempts=3,
        backoff_base=0,
    )
    yield bank
    await bank.close()


class TestHttpItemBank:
    """Tests for HttpItemBank."""

    def test_sends_api_key(self, bank):
        assert bank.client.headers["X-API-Key"] == "secret"
        assert bank.base_url == "http://bank.test/api"

    @pytest.mark.asyncio
    async def test_fetch_items_success(self, bank, item_filter, mcq_payload, monkeypatch):
        seen = {}

        async def mock_get(url, **kwargs):
            seen["url"] = url
            seen["params"] = kwargs.get("params")
            return Response(200, json=mcq_payload, request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        items = await bank.fetch_items(item_filter)

        assert [i.id for i in items] == ["a", "b"]
        assert items[0].correct_index == 2
        assert seen["url"] == "http://bank.test/api/mcq/items"
        assert seen["params"]["category"] == "Concurrency"

    @pytest.mark.asyncio
    async def test_accepts_bare_list(self, bank, item_filter, mcq_payload, monkeypatch):
        async def mock_get(url, **kwargs):
            return Response(200, json=mcq_payload["items"], request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        assert len(await bank.fetch_items(item_filter)) == 2

    @pytest.mark.asyncio
    async def test_truncates_to_limit(self, bank, mcq_payload, monkeypatch):
        async def mock_get(url, **kwargs):
            return Response(200, json=mcq_payload, request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        items = await bank.fetch_items(ItemFilter(kind=SessionKind.MCQ, limit=1))

        assert [i.id for i in items] == ["a"]

    @pytest.mark.asyncio
    async def test_timeout_retry(self, bank, item_filter, mcq_payload, monkeypatch):
        """Test retry logic on timeout."""
        call_count = 0

        async def mock_get(url, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise TimeoutException("Timeout")
            return Response(200, json=mcq_payload, request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        items = await bank.fetch_items(item_filter)

        assert len(items) == 2
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_server_error_exhausts_retries(self, bank, item_filter, monkeypatch):
        call_count = 0

        async def mock_get(url, **kwargs):
            nonlocal call_count
            call_count += 1
            return Response(503, json={"error": "down"}, request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        with pytest.raises(BankUnavailable) as exc_info:
            await bank.fetch_items(item_filter)

        assert call_count == 3
        assert exc_info.value.cause is not None

    @pytest.mark.asyncio
    async def test_client_error_does_not_retry(self, bank, item_filter, monkeypatch):
        call_count = 0

        async def mock_get(url, **kwargs):
            nonlocal call_count
            call_count += 1
            return Response(401, json={"error": "bad key"}, request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        with pytest.raises(BankUnavailable, match="401"):
            await bank.fetch_items(item_filter)

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_connection_error(self, bank, item_filter, monkeypatch):
        async def mock_get(url, **kwargs):
            raise ConnectError("refused", request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        with pytest.raises(BankUnavailable):
            await bank.fetch_items(item_filter)

    @pytest.mark.asyncio
    async def test_invalid_json(self, bank, item_filter, monkeypatch):
        async def mock_get(url, **kwargs):
            return Response(200, content=b"<html>", request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        with pytest.raises(BankUnavailable, match="invalid JSON"):
            await bank.fetch_items(item_filter)

    @pytest.mark.asyncio
    async def test_unexpected_payload_shape(self, bank, item_filter, monkeypatch):
        async def mock_get(url, **kwargs):
            return Response(200, json={"data": "nothing"}, request=Request("GET", url))

        monkeypatch.setattr(bank.client, "get", mock_get)

        with pytest.raises(BankUnavailable):
            await bank.fetch_items(item_filter)
