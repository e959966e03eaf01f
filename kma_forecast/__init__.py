"""
KMA Forecast - Resolve short-term village forecasts for geographic coordinates.
"""

__version__ = "0.1.0"
__author__ = "KMA Forecast Team"

from .cli import main
from .exceptions import ForecastFetchError, TransportError, UpstreamError
from .fetcher import fetch_forecast
from .forecast import get_village_forecast
from .grid import latlon_to_grid
from .models import (
    FetchResult,
    FetchStatus,
    ForecastRow,
    GridCell,
    PrecipitationType,
    RawRecord,
    SkyCondition,
    Vintage,
)
from .transformer import assemble_rows, rows_to_dataframe
from .vintage import latest_vintage

__all__ = [
    "main",
    "get_village_forecast",
    "latlon_to_grid",
    "latest_vintage",
    "fetch_forecast",
    "assemble_rows",
    "rows_to_dataframe",
    "FetchResult",
    "FetchStatus",
    "ForecastRow",
    "GridCell",
    "PrecipitationType",
    "RawRecord",
    "SkyCondition",
    "Vintage",
    "ForecastFetchError",
    "TransportError",
    "UpstreamError"
]
