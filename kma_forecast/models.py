"""
Value types shared across the forecast pipeline.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional


@dataclass(frozen=True)
class GridCell:
    """Integer (nx, ny) address on the KMA forecast grid."""
    nx: int
    ny: int


@dataclass(frozen=True)
class Vintage:
    """
    One scheduled forecast publication.

    Attributes:
        issue_date: Publication date as YYYYMMDD
        issue_time: Publication time as HHMM (24h)
    """
    issue_date: str
    issue_time: str


class ForecastCategory(str, Enum):
    """Forecast categories consumed by the row assembler, keyed by KMA code."""
    TEMPERATURE = "TMP"
    PRECIP_PROBABILITY = "POP"
    PRECIP_TYPE = "PTY"
    SKY_CONDITION = "SKY"

    @classmethod
    def from_code(cls, code: str) -> Optional["ForecastCategory"]:
        """
        Look up a category by its KMA code.

        Args:
            code: Category code as sent by the service (e.g. "TMP")

        Returns:
            Matching category, or None for categories this package ignores
        """
        try:
            return cls(code)
        except ValueError:
            return None


class PrecipitationType(IntEnum):
    """KMA precipitation type (PTY) codes."""
    NONE = 0
    RAIN = 1
    RAIN_SNOW = 2
    SNOW = 3
    SHOWER = 4
    RAINDROP = 5
    RAINDROP_SNOW_FLURRY = 6
    SNOW_FLURRY = 7

    @classmethod
    def from_code(cls, value: float) -> "PrecipitationType":
        """Map a numeric code onto the enum, falling back to NONE."""
        return _coerce(cls, value, cls.NONE)


class SkyCondition(IntEnum):
    """KMA sky condition (SKY) codes."""
    CLEAR = 1
    MOSTLY_CLOUDY = 3
    OVERCAST = 4

    @classmethod
    def from_code(cls, value: float) -> "SkyCondition":
        """Map a numeric code onto the enum, falling back to CLEAR."""
        return _coerce(cls, value, cls.CLEAR)


def _coerce(enum_cls, value: float, default):
    if not math.isfinite(value) or not float(value).is_integer():
        return default
    try:
        return enum_cls(int(value))
    except ValueError:
        return default


@dataclass(frozen=True)
class RawRecord:
    """One category value for one forecast slot, as delivered by the service."""
    category: ForecastCategory
    forecast_date: str
    forecast_time: str
    raw_value: str


@dataclass(frozen=True)
class ForecastRow:
    """A fully assembled forecast slot."""
    forecast_date: str
    forecast_time: str
    temperature: float
    precipitation_probability: float
    precipitation_type: PrecipitationType
    sky_condition: SkyCondition


class FetchStatus(str, Enum):
    """Outcome of a fetch that did not fail."""
    OK = "ok"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True)
class FetchResult:
    """Records returned by the fetcher, tagged with how they were obtained."""
    status: FetchStatus
    records: List[RawRecord] = field(default_factory=list)

    @property
    def configured(self) -> bool:
        return self.status is not FetchStatus.UNCONFIGURED
