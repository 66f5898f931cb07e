"""Test helpers: MockTransport-backed clients and row value builders.

Directory clients are wired to ``httpx.MockTransport`` so no test touches
the network.
"""

from __future__ import annotations

from typing import Callable, Dict, List

import httpx

from pd_onboard.aggregator import DirectoryAggregator
from pd_onboard.async_client import AsyncPagerDutyClient
from pd_onboard.client import PagerDutyClient
from pd_onboard.schema import FIELD_KEYS, TRACKED_FIELDS

BASE_URL = "https://pd.test"


def make_entities(resource: str, count: int) -> List[Dict[str, str]]:
    kind = resource[:-1]
    return [{"id": f"P{kind[0].upper()}{i:04d}", "type": kind, "name": f"{kind}-{i}"} for i in range(count)]


def paged_handler(resource: str, entities: List[Dict], calls: List[httpx.Request]) -> Callable:
    """A MockTransport handler serving ``entities`` with limit/offset paging."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        limit = int(request.url.params.get("limit", 25))
        offset = int(request.url.params.get("offset", 0))
        chunk = entities[offset:offset + limit]
        return httpx.Response(200, json={
            resource: chunk,
            "limit": limit,
            "offset": offset,
            "more": offset + limit < len(entities),
            "total": None,
        })

    return handler


def make_sync_client(handler, api_token="test-token", retries=0, page_size=100) -> PagerDutyClient:
    """Create a client backed by MockTransport (no real network)."""
    client = PagerDutyClient.__new__(PagerDutyClient)
    client._base_url = BASE_URL
    client._api_token = api_token
    client._timeout = 5.0
    client._retries = retries
    client._aggregator = DirectoryAggregator(page_size)
    client._client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return client


def make_async_client(handler, api_token="test-token", retries=0, page_size=100) -> AsyncPagerDutyClient:
    client = AsyncPagerDutyClient.__new__(AsyncPagerDutyClient)
    client._base_url = BASE_URL
    client._api_token = api_token
    client._timeout = 5.0
    client._retries = retries
    client._retry_delay = 0.0
    client._retry_backoff = 2.0
    client._aggregator = DirectoryAggregator(page_size)
    client._client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return client


def full_values(**overrides: str) -> Dict[str, str]:
    values = {key: f"{key}-value" for key in FIELD_KEYS}
    for key in ("integrated_with_pd", "user_acknowledge", "terraform_onboarding",
                "team_name_does_not_exist", "tech_svc_does_not_exist"):
        values[key] = "Yes"
    values.update(overrides)
    return values


def tracked_values(filled: int) -> Dict[str, str]:
    """Only the first ``filled`` tracked fields populated."""
    return {key: f"{key}-value" for key in TRACKED_FIELDS[:filled]}


class CountingIds:
    """Deterministic id factory for dataset tests."""

    def __init__(self) -> None:
        self.n = 0

    def __call__(self, prefix: str = "row") -> str:
        self.n += 1
        return f"{prefix}-{self.n}"
