"""
"Now" providers.

All scheduling math runs on naive local datetimes in the shop's timezone,
matching how appointment_date / appointment_time are stored.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall clock in the configured timezone."""

    def __init__(self, timezone: str):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz).replace(tzinfo=None, microsecond=0)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given local datetime (reproducible simulations)."""

    def __init__(self, at: datetime):
        self.at = at

    def now(self) -> datetime:
        return self.at

    def today(self) -> date:
        return self.at.date()

    def set(self, at: datetime) -> None:
        self.at = at
