"""Shared helpers for Windy API endpoint modules.

Maps HTTP status codes onto the exception taxonomy and parses rate-limit
windows. Internal to skwindy.
"""

from __future__ import annotations

import time
from datetime import UTC
from email.utils import parsedate_to_datetime
from typing import Any

from skwindy._transport import HttpResponse
from skwindy.exceptions import (
    WindyApiError,
    WindyAuthenticationError,
    WindyMalformedRequestError,
    WindyRateLimitError,
)

_AUTH_STATUSES: frozenset[int] = frozenset({401, 403})


def _seconds_to_ms(value: Any) -> int | None:
    try:
        seconds = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if seconds != seconds or seconds < 0:  # NaN check
        return None
    return int(seconds * 1000)


def parse_retry_after_ms(response: HttpResponse, *, now: float | None = None) -> int | None:
    """Extract the rate-limit window from a 429 response, in milliseconds.

    Looks at the ``Retry-After`` header (delta seconds or HTTP date), then
    at a ``retry_after`` / ``retryAfter`` field (seconds) in a JSON body.
    Returns ``None`` if neither is usable.
    """
    header = response.headers.get("retry-after")
    if header:
        delta = _seconds_to_ms(header)
        if delta is not None:
            return delta
        try:
            when = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            when = None
        if when is not None:
            if when.tzinfo is None:
                when = when.replace(tzinfo=UTC)
            current = time.time() if now is None else now
            return max(0, int((when.timestamp() - current) * 1000))

    body = response.json()
    if isinstance(body, dict):
        for key in ("retry_after", "retryAfter"):
            if key in body:
                delta = _seconds_to_ms(body[key])
                if delta is not None:
                    return delta
    return None


def _error_detail(response: HttpResponse) -> str:
    body = response.json()
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.text[:200]


def raise_for_response(response: HttpResponse, *, endpoint: str) -> None:
    """Raise the matching :class:`WindyApiError` for a non-2xx response."""
    if response.ok:
        return

    status = response.status
    message = f"{endpoint} failed: HTTP {status} {_error_detail(response)}".rstrip()

    if status == 429:
        raise WindyRateLimitError(
            message,
            endpoint=endpoint,
            retry_after_ms=parse_retry_after_ms(response),
        )
    if status in _AUTH_STATUSES:
        raise WindyAuthenticationError(message, status_code=status, endpoint=endpoint)
    if status == 400:
        raise WindyMalformedRequestError(message, status_code=status, endpoint=endpoint)
    raise WindyApiError(message, status_code=status, endpoint=endpoint)
