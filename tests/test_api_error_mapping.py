from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pytest

from skwindy._api._common import parse_retry_after_ms, raise_for_response
from skwindy._api.observation import build_observation_params, submit_observation
from skwindy._api.station import update_station
from skwindy._transport import HttpResponse
from skwindy.config import ReporterConfig
from skwindy.exceptions import (
    NoSensorData,
    WindyApiError,
    WindyAuthenticationError,
    WindyMalformedRequestError,
    WindyRateLimitError,
)
from skwindy.models import ObservationSnapshot, Position, StationMetadata


class _StaticTransport:
    def __init__(self, response: HttpResponse) -> None:
        self._response = response
        self.calls: list[dict[str, Any]] = []

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        self.calls.append(
            {"method": method, "endpoint": endpoint, "params": params, "json_body": json_body, "headers": headers}
        )
        return self._response


def _config() -> ReporterConfig:
    return ReporterConfig(station_id="st-1", station_password="pw", api_key="key", station_name="SV Example")


def test_success_does_not_raise() -> None:
    raise_for_response(HttpResponse(200, "OK"), endpoint="/x")


@pytest.mark.parametrize("status", [401, 403])
def test_auth_statuses_raise_authentication_error(status: int) -> None:
    with pytest.raises(WindyAuthenticationError) as exc_info:
        raise_for_response(HttpResponse(status, '{"message": "bad key"}'), endpoint="/api/v2/pws/st-1")

    exc = exc_info.value
    assert exc.code == str(status)
    assert exc.endpoint == "/api/v2/pws/st-1"
    assert "bad key" in str(exc)


def test_400_raises_malformed_request() -> None:
    with pytest.raises(WindyMalformedRequestError):
        raise_for_response(HttpResponse(400, "Invalid lat"), endpoint="/x")


def test_other_status_raises_plain_api_error() -> None:
    with pytest.raises(WindyApiError) as exc_info:
        raise_for_response(HttpResponse(503, "down"), endpoint="/x")

    exc = exc_info.value
    assert type(exc) is WindyApiError
    assert exc.status_code == 503
    assert exc.code == "503"


def test_429_carries_retry_window_from_header() -> None:
    with pytest.raises(WindyRateLimitError) as exc_info:
        raise_for_response(HttpResponse(429, "", {"retry-after": "600"}), endpoint="/x")

    assert exc_info.value.retry_after_ms == 600_000
    assert exc_info.value.code == "429"


def test_429_without_window() -> None:
    with pytest.raises(WindyRateLimitError) as exc_info:
        raise_for_response(HttpResponse(429, "Too many requests"), endpoint="/x")
    assert exc_info.value.retry_after_ms is None


def test_retry_after_http_date() -> None:
    when = datetime(2026, 10, 21, 7, 28, tzinfo=UTC)
    response = HttpResponse(429, "", {"retry-after": "Wed, 21 Oct 2026 07:28:00 GMT"})

    assert parse_retry_after_ms(response, now=when.timestamp() - 120) == 120_000
    # A date in the past means "now".
    assert parse_retry_after_ms(response, now=when.timestamp() + 60) == 0


def test_retry_after_from_json_body() -> None:
    assert parse_retry_after_ms(HttpResponse(429, json.dumps({"retryAfter": 30}))) == 30_000
    assert parse_retry_after_ms(HttpResponse(429, json.dumps({"retry_after": "1.5"}))) == 1_500
    assert parse_retry_after_ms(HttpResponse(429, json.dumps({"retry_after": "soon"}))) is None


def test_observation_params() -> None:
    snapshot = ObservationSnapshot(temp=15.0, wind=5.0, winddir=90)
    params = build_observation_params(_config(), snapshot, now_ms=1_700_000_000_999)

    assert params == {"id": "st-1", "PASSWORD": "pw", "ts": 1_700_000_000, "temp": 15.0, "wind": 5.0, "winddir": 90}


@pytest.mark.asyncio
async def test_submit_observation_sends_get() -> None:
    transport = _StaticTransport(HttpResponse(200, "SUCCESS"))
    await submit_observation(_config(), transport, ObservationSnapshot(rh=65), now_ms=1_000)

    call = transport.calls[0]
    assert call["method"] == "GET"
    assert call["endpoint"] == "/api/v2/observation/update"
    assert call["params"] == {"id": "st-1", "PASSWORD": "pw", "ts": 1, "rh": 65}
    assert call["json_body"] is None


@pytest.mark.asyncio
async def test_submit_empty_observation_raises_without_request() -> None:
    transport = _StaticTransport(HttpResponse(200))
    with pytest.raises(NoSensorData):
        await submit_observation(_config(), transport, ObservationSnapshot())
    assert transport.calls == []


@pytest.mark.asyncio
async def test_update_station_sends_put_with_api_key() -> None:
    config = _config()
    transport = _StaticTransport(HttpResponse(200, "{}"))
    metadata = StationMetadata.from_config(config, Position(latitude=60.0, longitude=10.0))

    await update_station(config, transport, metadata)

    call = transport.calls[0]
    assert call["method"] == "PUT"
    assert call["endpoint"] == "/api/v2/pws/st-1"
    assert call["headers"] == {"windy-api-key": "key"}
    assert call["json_body"]["lat"] == 60.0
    assert call["json_body"]["name"] == "SV Example"
    assert call["params"] is None


@pytest.mark.asyncio
async def test_update_station_maps_rejection() -> None:
    config = _config()
    transport = _StaticTransport(HttpResponse(401, "Unauthorized"))
    metadata = StationMetadata.from_config(config, Position(latitude=60.0, longitude=10.0))

    with pytest.raises(WindyAuthenticationError):
        await update_station(config, transport, metadata)
