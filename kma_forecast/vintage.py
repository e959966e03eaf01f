"""
Selection of the latest published forecast run ("vintage").
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import Vintage

logger = logging.getLogger(__name__)

# The service publishes on Korea Standard Time, which has no daylight saving
KST = timezone(timedelta(hours=9), name="KST")

# Daily publication schedule, ascending
BASE_TIMES = ("0200", "0500", "0800", "1100", "1400", "1700", "2000", "2300")


def to_kst(now: Optional[datetime] = None) -> datetime:
    """
    Express an instant in KST.

    Args:
        now: Instant to convert. Naive datetimes are taken as UTC. Defaults to
            the current time.

    Returns:
        Timezone-aware datetime in KST
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(KST)


def latest_vintage(now: Optional[datetime] = None) -> Vintage:
    """
    Find the most recent publication that is already available.

    The issue time is the latest scheduled time not later than the current
    KST time of day. Before the first run of the day the previous day's last
    run is used.

    Args:
        now: Instant to evaluate, defaults to the current time

    Returns:
        Vintage with issue_date (YYYYMMDD) and issue_time (HHMM)
    """
    local = to_kst(now)
    current = local.hour * 100 + local.minute

    if current < int(BASE_TIMES[0]):
        previous_day = local - timedelta(days=1)
        vintage = Vintage(previous_day.strftime("%Y%m%d"), BASE_TIMES[-1])
    else:
        issue_time = BASE_TIMES[0]
        for base_time in BASE_TIMES:
            if current >= int(base_time):
                issue_time = base_time
        vintage = Vintage(local.strftime("%Y%m%d"), issue_time)

    logger.debug(f"Selected vintage {vintage.issue_date} {vintage.issue_time} for {local.isoformat()}")
    return vintage
