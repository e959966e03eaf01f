"""
End-to-end resolution of a village forecast for one coordinate.
"""

import logging
from datetime import datetime
from typing import List, Optional

import requests

from .fetcher import SERVICE_ENDPOINT, fetch_forecast
from .grid import latlon_to_grid
from .models import ForecastRow
from .transformer import assemble_rows
from .vintage import latest_vintage

logger = logging.getLogger(__name__)


def get_village_forecast(
    latitude: float,
    longitude: float,
    service_key: Optional[str],
    now: Optional[datetime] = None,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
    endpoint: str = SERVICE_ENDPOINT
) -> List[ForecastRow]:
    """
    Resolve the latest short-term forecast for a coordinate.

    Args:
        latitude: Latitude in decimal degrees
        longitude: Longitude in decimal degrees
        service_key: KMA service key; without one no forecast is available
        now: Instant used to pick the publication, defaults to the current time
        session: Optional requests session
        timeout: Request timeout in seconds
        endpoint: Village forecast endpoint URL

    Returns:
        Ordered forecast rows, empty when unconfigured or when no slot is complete

    Raises:
        TransportError: If the service could not be reached
        UpstreamError: If the service reported an error
    """
    cell = latlon_to_grid(latitude, longitude)
    vintage = latest_vintage(now)

    result = fetch_forecast(cell, vintage, service_key, session=session, timeout=timeout, endpoint=endpoint)
    if not result.configured:
        return []

    return assemble_rows(result.records)
