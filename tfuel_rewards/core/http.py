"""
Shared async JSON GET helper for upstream APIs (httpx).

Non-2xx and transport failures raise UpstreamError; a 2xx body that is not
JSON raises UpstreamDataError. No retries: callers surface the failure.
"""

from __future__ import annotations

from typing import Any

import httpx

from tfuel_rewards.core.exceptions import UpstreamDataError, UpstreamError
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

JSON_HEADERS = {"accept": "application/json"}


async def fetch_json(
    client: httpx.AsyncClient,
    service: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    """GET url and return decoded JSON; raise UpstreamError on any failure."""
    try:
        r = await client.get(
            url,
            params=params,
            headers={**JSON_HEADERS, **(headers or {})},
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        logger.warning("upstream_request_failed", service=service, error=str(e))
        raise UpstreamError(service, reason=f"request failed: {e}") from e

    if not r.is_success:
        logger.warning("upstream_http_error", service=service, status=r.status_code)
        raise UpstreamError(service, r.status_code, r.text)

    try:
        return r.json()
    except ValueError as e:
        raise UpstreamDataError(service, "response is not valid JSON") from e
