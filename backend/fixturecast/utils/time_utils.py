import os
from datetime import datetime
from typing import Optional
from pytz import timezone

from fixturecast.domain.constants import SEASON_START_MONTH

# Application timezone (league local time)
APP_TZ = timezone(os.getenv("APP_TIMEZONE", "Europe/London"))

def get_current_time() -> datetime:
    """Get current time in the application timezone."""
    return datetime.now(APP_TZ)

def get_today_str() -> str:
    """Get today's date string in the application timezone (YYYY-MM-DD)."""
    return get_current_time().strftime("%Y-%m-%d")

def get_current_season(now: Optional[datetime] = None) -> int:
    """
    Season start year for a given moment.

    The season starts in August: from August onwards the current year is the
    season, before that the season started the previous calendar year.
    """
    now = now or get_current_time()
    if now.month >= SEASON_START_MONTH:
        return now.year
    return now.year - 1
