"""AsyncPagerDutyClient: asynchronous directory reads.

Pages are still fetched one after another; only the I/O is non-blocking.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

import httpx

from pd_onboard.aggregator import PAGE_SIZE, DirectoryAggregator
from pd_onboard.auth import build_auth_headers
from pd_onboard.client import (
    ACCEPT_HEADER,
    DEFAULT_BASE_URL,
    Filters,
    build_params,
    check_resource,
    parse_page,
    raise_for_status,
    service_filters,
)
from pd_onboard.errors import FetchError
from pd_onboard.models import DirectoryPage, Service, Team, User
from pd_onboard.utils import RETRYABLE_STATUS_CODES, generate_request_id

logger = logging.getLogger(__name__)


class AsyncPagerDutyClient:
    """Asynchronous client for the PagerDuty directory endpoints.

    Usage::

        import asyncio
        from pd_onboard import AsyncPagerDutyClient

        async def main():
            async with AsyncPagerDutyClient(api_token="...") as c:
                services = await c.get_all_services()
                print(len(services))

        asyncio.run(main())
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        retries: int = 0,
        retry_delay: float = 0.5,
        retry_backoff: float = 2.0,
        page_size: int = PAGE_SIZE,
    ) -> None:
        """Initialize async client.

        Args:
            base_url: PagerDuty API base URL
            api_token: REST API token; falls back to PAGERDUTY_API_TOKEN
            timeout: Request timeout in seconds
            retries: Number of retries for retryable errors (429, 5xx, network)
            retry_delay: Initial delay between retries (seconds)
            retry_backoff: Backoff multiplier for retries
            page_size: Items requested per page when aggregating
        """
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._retries = max(0, retries)
        self._retry_delay = retry_delay
        self._retry_backoff = retry_backoff
        self._aggregator = DirectoryAggregator(page_size)
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": ACCEPT_HEADER}
        headers.update(build_auth_headers(self._api_token))
        if extra:
            headers.update(extra)
        if "x-request-id" not in {k.lower() for k in headers}:
            headers["X-Request-ID"] = generate_request_id()
        return headers

    def _should_retry(self, status_code: int) -> bool:
        return status_code in RETRYABLE_STATUS_CODES

    async def _get(self, path: str, **kwargs) -> httpx.Response:
        """GET with retry on 429/5xx and network errors; 4xx fail immediately."""
        headers = self._headers(kwargs.pop("headers", None))
        delay = self._retry_delay

        for attempt in range(self._retries + 1):
            try:
                resp = await self._client.get(path, headers=headers, **kwargs)
            except httpx.HTTPError as e:
                if attempt < self._retries:
                    await asyncio.sleep(delay)
                    delay *= self._retry_backoff
                    continue
                raise FetchError(0, f"Network error on GET {path}: {e}", None, headers["X-Request-ID"]) from e

            if attempt < self._retries and self._should_retry(resp.status_code):
                logger.debug("GET %s returned %d, retrying in %.2fs", path, resp.status_code, delay)
                await asyncio.sleep(delay)
                delay *= self._retry_backoff
                continue

            raise_for_status(resp)
            return resp

    # ── Public API ───────────────────────────────────────────────

    async def fetch_page(
        self,
        resource: str,
        limit: int = PAGE_SIZE,
        offset: int = 0,
        filters: Optional[Filters] = None,
    ) -> DirectoryPage:
        check_resource(resource)
        resp = await self._get(f"/{resource}", params=build_params(limit, offset, filters))
        return parse_page(resource, resp)

    async def fetch_all(self, resource: str, filters: Optional[Filters] = None) -> list:
        check_resource(resource)

        async def page(limit: int, offset: int) -> DirectoryPage:
            return await self.fetch_page(resource, limit, offset, filters)

        return await self._aggregator.fetch_all_async(page)

    async def get_all_users(self, filters: Optional[Filters] = None) -> List[User]:
        return await self.fetch_all("users", filters)

    async def get_all_teams(self, filters: Optional[Filters] = None) -> List[Team]:
        return await self.fetch_all("teams", filters)

    async def get_all_services(self, filters: Optional[Filters] = None) -> List[Service]:
        return await self.fetch_all("services", service_filters(filters))

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
