"""
Transformer module for assembling raw forecast records into forecast rows.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .models import ForecastCategory, ForecastRow, PrecipitationType, RawRecord, SkyCondition

logger = logging.getLogger(__name__)

SlotKey = Tuple[str, str]

ROW_COLUMNS = [
    'fcst_date', 'fcst_time', 'forecast_time_kst', 'temperature',
    'precipitation_probability', 'precipitation_type', 'sky_condition'
]


# Plain decimal or exponent notation; rejects forms like "1_0" or "0x10"
_NUMBER = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*")


@dataclass
class SlotAccumulator:
    """Parsed values seen so far for each category of one forecast slot."""
    temperature: Optional[float] = None
    precipitation_probability: Optional[float] = None
    precipitation_type: Optional[PrecipitationType] = None
    sky_condition: Optional[SkyCondition] = None

    def add(self, record: RawRecord) -> None:
        """
        Record a value for its category.

        A value that is not a finite number is ignored, so it never replaces
        a value already seen for the same category.
        """
        value = _parse_number(record.raw_value)
        if value is None:
            return

        if record.category is ForecastCategory.TEMPERATURE:
            self.temperature = value
        elif record.category is ForecastCategory.PRECIP_PROBABILITY:
            self.precipitation_probability = value
        elif record.category is ForecastCategory.PRECIP_TYPE:
            self.precipitation_type = PrecipitationType.from_code(value)
        elif record.category is ForecastCategory.SKY_CONDITION:
            self.sky_condition = SkyCondition.from_code(value)

    def finalize(self, key: SlotKey) -> Optional[ForecastRow]:
        """
        Build the row for this slot.

        Args:
            key: (forecast_date, forecast_time) of the slot

        Returns:
            ForecastRow, or None if a category has no numeric value
        """
        if (
            self.temperature is None
            or self.precipitation_probability is None
            or self.precipitation_type is None
            or self.sky_condition is None
        ):
            return None

        return ForecastRow(
            forecast_date=key[0],
            forecast_time=key[1],
            temperature=self.temperature,
            precipitation_probability=self.precipitation_probability,
            precipitation_type=self.precipitation_type,
            sky_condition=self.sky_condition
        )


def _parse_number(value: str) -> Optional[float]:
    if not _NUMBER.fullmatch(value):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def assemble_rows(records: Iterable[RawRecord]) -> List[ForecastRow]:
    """
    Assemble raw records into complete, ordered forecast rows.

    Records are grouped by (forecast_date, forecast_time). When a category
    appears twice for a slot the later numeric value wins; values that are not
    finite numbers are ignored. Slots left without a value for one of the four
    categories are dropped.

    Args:
        records: Raw records in any order

    Returns:
        List of ForecastRow sorted by forecast date and time
    """
    slots: Dict[SlotKey, SlotAccumulator] = {}

    for record in records:
        key = (record.forecast_date, record.forecast_time)
        slots.setdefault(key, SlotAccumulator()).add(record)

    rows = []
    for key, accumulator in slots.items():
        row = accumulator.finalize(key)
        if row is None:
            logger.debug(f"Dropping incomplete forecast slot {key[0]} {key[1]}")
            continue
        rows.append(row)

    # Dates and times are fixed-width digit strings, so string order is chronological
    rows.sort(key=lambda row: (row.forecast_date, row.forecast_time))

    logger.info(f"Assembled {len(rows)} forecast rows from {len(slots)} slots")
    return rows


def rows_to_dataframe(rows: List[ForecastRow]) -> pd.DataFrame:
    """
    Transform forecast rows into a DataFrame.

    Args:
        rows: Assembled forecast rows

    Returns:
        DataFrame with columns:
        fcst_date, fcst_time, forecast_time_kst, temperature,
        precipitation_probability, precipitation_type, sky_condition
    """
    if not rows:
        return pd.DataFrame(columns=ROW_COLUMNS)

    df = pd.DataFrame([
        {
            'fcst_date': row.forecast_date,
            'fcst_time': row.forecast_time,
            'temperature': row.temperature,
            'precipitation_probability': row.precipitation_probability,
            'precipitation_type': int(row.precipitation_type),
            'sky_condition': int(row.sky_condition)
        }
        for row in rows
    ])

    df['forecast_time_kst'] = pd.to_datetime(
        df['fcst_date'] + df['fcst_time'], format='%Y%m%d%H%M', errors='coerce'
    )
    df['temperature'] = df['temperature'].astype(float)
    df['precipitation_probability'] = df['precipitation_probability'].astype(float)

    return df.reindex(columns=ROW_COLUMNS)
