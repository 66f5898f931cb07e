"""Tests for AsyncPagerDutyClient.

Target: fast, MockTransport only.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from helpers import make_async_client, make_entities, paged_handler
from pd_onboard import AsyncPagerDutyClient
from pd_onboard.errors import AuthError, FetchError, ServerError


def run_async(coro):
    """Helper to run async coroutine in sync test."""
    return asyncio.run(coro)


async def _collect(client, method, *args):
    try:
        return await getattr(client, method)(*args)
    finally:
        await client.close()


class TestAsyncClientBasics:
    def test_async_client_init(self) -> None:
        client = AsyncPagerDutyClient(base_url="https://pd.test/", api_token="t", timeout=10.0)
        assert client._base_url == "https://pd.test"
        assert client._api_token == "t"
        assert client._timeout == 10.0
        run_async(client.close())

    def test_async_client_context_manager(self) -> None:
        async def test_ctx():
            async with AsyncPagerDutyClient() as client:
                assert isinstance(client, AsyncPagerDutyClient)
        run_async(test_ctx())

    def test_headers_generation(self) -> None:
        client = AsyncPagerDutyClient(api_token="test-key")
        headers = client._headers()
        assert headers["Authorization"] == "Token token=test-key"
        assert "X-Request-ID" in headers
        run_async(client.close())

    def test_retry_classification(self) -> None:
        client = AsyncPagerDutyClient(retries=2)
        assert client._should_retry(503) is True
        assert client._should_retry(429) is True
        assert client._should_retry(401) is False
        assert client._should_retry(404) is False
        run_async(client.close())

    def test_negative_retries_clamped(self) -> None:
        client = AsyncPagerDutyClient(retries=-1)
        assert client._retries == 0
        run_async(client.close())


class TestAsyncFetchAll:
    def test_sequential_pages_in_order(self) -> None:
        calls = []
        services = make_entities("services", 150)
        client = make_async_client(paged_handler("services", services, calls))
        result = run_async(_collect(client, "get_all_services"))
        assert [s.id for s in result] == [s["id"] for s in services]
        assert [c.url.params["offset"] for c in calls] == ["0", "100"]

    def test_users_and_filters(self) -> None:
        calls = []
        client = make_async_client(paged_handler("users", make_entities("users", 3), calls))
        result = run_async(_collect(client, "get_all_users", {"query": "ada"}))
        assert len(result) == 3
        assert calls[0].url.params["query"] == "ada"

    def test_retries_on_503_then_succeeds(self) -> None:
        attempts = []
        ok = paged_handler("teams", make_entities("teams", 1), [])

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(503, text="busy")
            return ok(request)

        client = make_async_client(handler, retries=3)
        result = run_async(_collect(client, "get_all_teams"))
        assert len(result) == 1
        assert len(attempts) == 3

    def test_no_retry_on_401(self) -> None:
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(401, json={"error": {"message": "bad token"}})

        client = make_async_client(handler, retries=3)
        with pytest.raises(AuthError):
            run_async(_collect(client, "get_all_teams"))
        assert len(attempts) == 1

    def test_exhausted_retries_raise_server_error(self) -> None:
        client = make_async_client(lambda request: httpx.Response(500, text="boom"), retries=1)
        with pytest.raises(ServerError):
            run_async(_collect(client, "get_all_users"))

    def test_page_failure_aborts_aggregation(self) -> None:
        ok = paged_handler("users", make_entities("users", 250), [])

        def handler(request):
            if request.url.params["offset"] == "100":
                raise httpx.ReadTimeout("timed out", request=request)
            return ok(request)

        client = make_async_client(handler)
        with pytest.raises(FetchError) as exc:
            run_async(_collect(client, "get_all_users"))
        assert exc.value.status_code == 0
