"""Station metadata endpoint.

Endpoint:
  - PUT /api/v2/pws/{station_id} (account API key auth)
"""

from __future__ import annotations

import logging

from skwindy._api._common import raise_for_response
from skwindy._constants import API_KEY_HEADER, STATION_ENDPOINT
from skwindy._transport import Transport
from skwindy.config import ReporterConfig
from skwindy.models.station import StationMetadata

_logger = logging.getLogger(__name__)


async def update_station(
    config: ReporterConfig,
    transport: Transport,
    metadata: StationMetadata,
) -> None:
    """Register the station identity and position."""
    endpoint = STATION_ENDPOINT.format(station_id=config.station_id)
    response = await transport.request(
        "PUT",
        endpoint,
        json_body=metadata.to_payload(),
        headers={API_KEY_HEADER: config.api_key},
    )
    raise_for_response(response, endpoint=endpoint)
    _logger.debug("Station position updated lat=%s lon=%s share=%s", metadata.lat, metadata.lon, metadata.share_option)
