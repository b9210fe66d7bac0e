"""
Application-level exceptions.

InputValidationError maps to HTTP 400 and UpstreamError to HTTP 502 in the
API server; the client-side errors never cross the HTTP boundary.
"""

from __future__ import annotations

BODY_SNIPPET_LEN = 200


class RewardsError(Exception):
    """Base class for all TFUEL Rewards errors."""


class InputValidationError(RewardsError):
    """Bad request parameters (missing/invalid addresses, since, symbol, amount)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(RewardsError):
    """
    Upstream transport or HTTP failure (non-2xx, network error).

    str(exc) reads like "Theta Explorer HTTP 503: <first 200 chars of body>".
    """

    def __init__(
        self,
        service: str,
        status_code: int | None = None,
        body: str = "",
        *,
        reason: str | None = None,
        snippet_len: int = BODY_SNIPPET_LEN,
    ) -> None:
        self.service = service
        self.status_code = status_code
        self.body_snippet = (body or "")[:snippet_len]
        if reason is not None:
            message = f"{service}: {reason}"
        else:
            message = f"{service} HTTP {status_code}: {self.body_snippet}"
        super().__init__(message)


class UpstreamDataError(UpstreamError):
    """2xx reply whose JSON is unparseable or has the wrong top-level shape."""

    def __init__(self, service: str, reason: str) -> None:
        super().__init__(service, reason=reason)


class TrackingError(RewardsError):
    """Invalid tracker transition, e.g. starting without a balance snapshot."""


class DashboardRequestError(RewardsError):
    """The dashboard client got a non-2xx reply from the rewards service."""

    def __init__(self, path: str, status_code: int, payload: object = None) -> None:
        self.path = path
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"{path} failed with HTTP {status_code}")
