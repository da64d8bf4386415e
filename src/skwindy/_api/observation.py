"""Observation update endpoint.

Endpoint:
  - GET /api/v2/observation/update (station password auth)
"""

from __future__ import annotations

import logging
import time
from typing import Any

from skwindy._api._common import raise_for_response
from skwindy._constants import OBSERVATION_ENDPOINT
from skwindy._transport import Transport
from skwindy.config import ReporterConfig
from skwindy.exceptions import NoSensorData
from skwindy.models.observation import ObservationSnapshot

_logger = logging.getLogger(__name__)


def build_observation_params(
    config: ReporterConfig,
    snapshot: ObservationSnapshot,
    now_ms: int,
) -> dict[str, Any]:
    """Build the query for an observation update."""
    return {
        "id": config.station_id,
        "PASSWORD": config.station_password,
        "ts": now_ms // 1000,
        **snapshot.to_params(),
    }


async def submit_observation(
    config: ReporterConfig,
    transport: Transport,
    snapshot: ObservationSnapshot,
    *,
    now_ms: int | None = None,
) -> None:
    """Send one observation.

    Raises
    ------
    NoSensorData
        If the snapshot has no values.
    WindyApiError
        On a non-2xx response (see ``raise_for_response``).
    WindyTransportError
        On network failure.
    """
    if snapshot.is_empty:
        raise NoSensorData("observation snapshot is empty")
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    params = build_observation_params(config, snapshot, now_ms)
    response = await transport.request("GET", OBSERVATION_ENDPOINT, params=params)
    raise_for_response(response, endpoint=OBSERVATION_ENDPOINT)
    _logger.debug("Observation accepted flags=%s", snapshot.flags())
