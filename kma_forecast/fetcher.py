"""
Fetcher for raw village forecast records from the KMA open API.
"""

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import requests

from .exceptions import TransportError, UpstreamError
from .models import FetchResult, FetchStatus, ForecastCategory, GridCell, RawRecord, Vintage

logger = logging.getLogger(__name__)

SERVICE_ENDPOINT = "https://apis.data.go.kr/1360000/VilageFcstInfoService_2.0/getVilageFcst"
PAGE_NO = 1
NUM_OF_ROWS = 200

RESULT_CODE_OK = "00"

# A '%' that does not start a two-digit hex escape
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_service_key(service_key: str) -> str:
    """
    Percent-decode a service key once, keeping it verbatim if decoding fails.

    Keys are issued both in encoded and decoded form, so either may be
    configured. The decoded key must not be decoded again.

    Args:
        service_key: Service key as configured

    Returns:
        Decoded key, or the original value if it is not a valid encoding
    """
    if "%" not in service_key:
        return service_key

    if _MALFORMED_ESCAPE.search(service_key):
        logger.debug("Service key contains a malformed escape, using it verbatim")
        return service_key

    try:
        return unquote(service_key, errors="strict")
    except UnicodeDecodeError:
        logger.debug("Service key does not decode to UTF-8, using it verbatim")
        return service_key


def build_query_params(cell: GridCell, vintage: Vintage, service_key: str) -> Dict[str, str]:
    """
    Build the query parameters of a village forecast request.

    Args:
        cell: Grid cell to request
        vintage: Publication to request
        service_key: Already decoded service key

    Returns:
        Dictionary of query parameters
    """
    return {
        "serviceKey": service_key,
        "pageNo": str(PAGE_NO),
        "numOfRows": str(NUM_OF_ROWS),
        "dataType": "JSON",
        "base_date": vintage.issue_date,
        "base_time": vintage.issue_time,
        "nx": str(cell.nx),
        "ny": str(cell.ny),
    }


def parse_items(payload: Any) -> List[RawRecord]:
    """
    Extract forecast records from a decoded response envelope.

    Missing or malformed item lists produce no records. Items that are not
    objects, lack a field, or belong to another category are skipped.

    Args:
        payload: Decoded JSON body

    Returns:
        List of RawRecord for the TMP, POP, PTY and SKY categories
    """
    try:
        items = payload["response"]["body"]["items"]["item"]
    except (KeyError, TypeError):
        return []

    if not isinstance(items, list):
        return []

    records = []
    for item in items:
        if not isinstance(item, dict):
            continue

        category = ForecastCategory.from_code(item.get("category"))
        if category is None:
            continue

        fcst_date = item.get("fcstDate")
        fcst_time = item.get("fcstTime")
        fcst_value = item.get("fcstValue")
        if fcst_date is None or fcst_time is None or fcst_value is None:
            continue

        records.append(RawRecord(
            category=category,
            forecast_date=str(fcst_date),
            forecast_time=str(fcst_time),
            raw_value=str(fcst_value)
        ))

    return records


def _check_result_code(payload: Any) -> None:
    """
    Inspect the response header. An envelope without a result code is accepted.

    Raises:
        UpstreamError: If the service reported an error
    """
    try:
        header = payload["response"]["header"]
    except (KeyError, TypeError):
        return

    if not isinstance(header, dict) or header.get("resultCode") is None:
        return

    result_code = str(header["resultCode"])
    if result_code != RESULT_CODE_OK:
        message = header.get("resultMsg", "")
        raise UpstreamError(
            f"Forecast service returned result code {result_code}: {message}",
            result_code=result_code
        )


def fetch_forecast(
    cell: GridCell,
    vintage: Vintage,
    service_key: Optional[str],
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
    endpoint: str = SERVICE_ENDPOINT
) -> FetchResult:
    """
    Fetch raw forecast records for one grid cell and vintage.

    Exactly one request is made. Without a service key no request is made
    and an UNCONFIGURED result is returned.

    Args:
        cell: Grid cell to request
        vintage: Publication to request
        service_key: Service key, percent-encoded or not
        session: Optional requests session to send the request with
        timeout: Request timeout in seconds
        endpoint: Village forecast endpoint URL

    Returns:
        FetchResult with the records of the TMP, POP, PTY and SKY categories

    Raises:
        TransportError: If no response was received
        UpstreamError: If the service answered with an error
    """
    if not service_key or not service_key.strip():
        logger.warning("KMA service key is not configured, skipping forecast fetch")
        return FetchResult(FetchStatus.UNCONFIGURED)

    params = build_query_params(cell, vintage, decode_service_key(service_key))
    http = session if session is not None else requests

    logger.info(
        f"Requesting forecast for grid ({cell.nx}, {cell.ny}) "
        f"issued {vintage.issue_date} {vintage.issue_time}"
    )

    try:
        response = http.get(endpoint, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Failed to reach forecast service: {str(e)}") from e

    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        raise UpstreamError(
            f"Forecast service returned HTTP {response.status_code}",
            status_code=response.status_code
        ) from e

    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamError(
            "Forecast service returned a non-JSON body",
            status_code=response.status_code
        ) from e

    _check_result_code(payload)

    records = parse_items(payload)
    logger.info(f"Received {len(records)} forecast records")
    return FetchResult(FetchStatus.OK, records)
