"""PagerDutyClient: directory reads against the PagerDuty REST API v2."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

import httpx
from pydantic import ValidationError as PydanticValidationError

from pd_onboard.aggregator import PAGE_SIZE, DirectoryAggregator
from pd_onboard.auth import build_auth_headers
from pd_onboard.errors import AuthError, FetchError, ForbiddenError, NotFoundError, RateLimitError, ServerError
from pd_onboard.models import DirectoryEntity, DirectoryPage, Service, Team, User
from pd_onboard.utils import generate_request_id, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.pagerduty.com"
ACCEPT_HEADER = "application/vnd.pagerduty+json;version=2"

RESOURCE_MODELS: Dict[str, Type[DirectoryEntity]] = {
    "users": User,
    "teams": Team,
    "services": Service,
}

DEFAULT_SERVICE_INCLUDES = ("teams", "escalation_policies")

Filters = Mapping[str, Any]


# ── Shared request/response helpers ─────────────────────────────

def check_resource(resource: str) -> Type[DirectoryEntity]:
    if resource not in RESOURCE_MODELS:
        raise ValueError(f"Unknown resource type: {resource!r} (expected one of {sorted(RESOURCE_MODELS)})")
    return RESOURCE_MODELS[resource]


def build_params(limit: int, offset: int, filters: Optional[Filters] = None) -> List[Tuple[str, str]]:
    """Query params for one page request.

    Filters pass through unmodified; list/tuple values become repeated
    ``key[]`` params the way the PagerDuty API expects (``team_ids[]``).
    """
    params: List[Tuple[str, str]] = [("limit", str(limit)), ("offset", str(offset))]
    for key, value in (filters or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            name = key if key.endswith("[]") else f"{key}[]"
            params.extend((name, str(v)) for v in value)
        elif isinstance(value, bool):
            params.append((key, "true" if value else "false"))
        else:
            params.append((key, str(value)))
    return params


def raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code < 400:
        return
    request_id = resp.headers.get("x-request-id")
    try:
        body = resp.json()
    except ValueError:
        body = resp.text

    if isinstance(body, dict):
        # PagerDuty error envelope: {"error": {"message": ..., "code": ..., "errors": [...]}}
        err = body.get("error")
        if isinstance(err, dict):
            message = err.get("message", str(body))
        else:
            message = body.get("message") or str(body)
    else:
        message = str(body) or resp.reason_phrase

    if resp.status_code == 401:
        raise AuthError(resp.status_code, message, body, request_id)
    if resp.status_code == 403:
        raise ForbiddenError(resp.status_code, message, body, request_id)
    if resp.status_code == 404:
        raise NotFoundError(resp.status_code, message, body, request_id)
    if resp.status_code == 429:
        raise RateLimitError(resp.status_code, message, body, request_id)
    if resp.status_code >= 500:
        raise ServerError(resp.status_code, message, body, request_id)
    raise FetchError(resp.status_code, message, body, request_id)


def parse_page(resource: str, resp: httpx.Response) -> DirectoryPage:
    """Turn a list response (``{"users": [...], "more": ..}``) into a DirectoryPage."""
    model = check_resource(resource)
    request_id = resp.headers.get("x-request-id")
    try:
        body = resp.json()
    except ValueError as e:
        raise FetchError(0, f"Invalid JSON in {resource} response: {e}", resp.text, request_id) from e
    if not isinstance(body, dict) or not isinstance(body.get(resource), list):
        raise FetchError(0, f"Malformed {resource} response: missing '{resource}' list", body, request_id)
    try:
        return DirectoryPage[model](
            items=body[resource],
            more=bool(body.get("more", False)),
            offset=body.get("offset") or 0,
            limit=body.get("limit") or 0,
            total=body.get("total"),
        )
    except PydanticValidationError as e:
        raise FetchError(0, f"Malformed {resource} response: {e}", body, request_id) from e


def service_filters(filters: Optional[Filters]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {"include[]": ",".join(DEFAULT_SERVICE_INCLUDES)}
    merged.update(filters or {})
    return merged


class PagerDutyClient:
    """Synchronous client for the PagerDuty directory endpoints.

    Usage::

        from pd_onboard import PagerDutyClient

        with PagerDutyClient(api_token="...") as c:
            teams = c.get_all_teams()
            print(len(teams))
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        retries: int = 0,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._retries = retries
        self._aggregator = DirectoryAggregator(page_size)
        self._client = httpx.Client(base_url=self._base_url, timeout=self._timeout)

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": ACCEPT_HEADER}
        headers.update(build_auth_headers(self._api_token))
        if extra:
            headers.update(extra)
        if "x-request-id" not in {k.lower() for k in headers}:
            headers["X-Request-ID"] = generate_request_id()
        return headers

    def _get(self, path: str, **kwargs) -> httpx.Response:
        headers = self._headers(kwargs.pop("headers", None))

        def do():
            return self._client.get(path, headers=headers, **kwargs)

        try:
            if self._retries > 0:
                resp = retry_with_backoff(do, retries=self._retries)
            else:
                resp = do()
        except httpx.HTTPError as e:
            raise FetchError(0, f"Network error on GET {path}: {e}", None, headers.get("X-Request-ID")) from e
        raise_for_status(resp)
        return resp

    # ── Public API ───────────────────────────────────────────────

    def fetch_page(
        self,
        resource: str,
        limit: int = PAGE_SIZE,
        offset: int = 0,
        filters: Optional[Filters] = None,
    ) -> DirectoryPage:
        """GET /{resource}?limit=&offset=: one page of users, teams or services."""
        check_resource(resource)
        resp = self._get(f"/{resource}", params=build_params(limit, offset, filters))
        page = parse_page(resource, resp)
        logger.debug("GET /%s offset=%d -> %d items", resource, offset, len(page.items))
        return page

    def fetch_all(self, resource: str, filters: Optional[Filters] = None) -> list:
        """Every entity of ``resource``, in server order."""
        check_resource(resource)
        return self._aggregator.fetch_all(
            lambda limit, offset: self.fetch_page(resource, limit, offset, filters)
        )

    def get_all_users(self, filters: Optional[Filters] = None) -> List[User]:
        return self.fetch_all("users", filters)

    def get_all_teams(self, filters: Optional[Filters] = None) -> List[Team]:
        return self.fetch_all("teams", filters)

    def get_all_services(self, filters: Optional[Filters] = None) -> List[Service]:
        """All services, with teams and escalation policies included."""
        return self.fetch_all("services", service_filters(filters))

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
