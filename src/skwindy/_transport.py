"""HTTP transport for the Windy stations API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import aiohttp

from skwindy._constants import USER_AGENT
from skwindy._redact import redact_for_log, redact_url
from skwindy.config import ReporterConfig
from skwindy.exceptions import WindyTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and body of a completed request.

    Header names are lower-cased.
    """

    status: int
    text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON, returning ``None`` when it is not JSON."""
        if not self.text:
            return None
        try:
            return json.loads(self.text)
        except json.JSONDecodeError:
            return None


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`AiohttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        ...


class AiohttpTransport:
    """Transport backed by a shared :class:`aiohttp.ClientSession`.

    Only network failures raise here; status interpretation belongs to the
    endpoint modules.
    """

    def __init__(self, config: ReporterConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        url = f"{self._config.base_url.rstrip('/')}{endpoint}"
        request_headers: dict[str, str] = {"user-agent": USER_AGENT}
        if headers:
            request_headers.update(headers)

        _logger.debug(
            "%s %s params=%s body=%s",
            method,
            url,
            redact_for_log(dict(params or {})),
            redact_for_log(dict(json_body or {})),
        )

        try:
            async with self._http.request(
                method,
                url,
                params={k: str(v) for k, v in (params or {}).items()},
                json=json_body,
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text(errors="replace")
                response_headers = {k.lower(): v for k, v in resp.headers.items()}
                status = resp.status
        except aiohttp.ClientError as exc:
            detail = redact_url(str(exc))
            raise WindyTransportError(f"Request to {endpoint} failed: {detail}", endpoint=endpoint) from exc
        except asyncio.TimeoutError as exc:
            raise WindyTransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc

        _logger.debug("%s %s -> %s %s", method, endpoint, status, text[:200])
        return HttpResponse(status=status, text=text, headers=response_headers)
