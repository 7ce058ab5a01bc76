"""Institutional wall clock."""
from datetime import datetime
from zoneinfo import ZoneInfo

from flask import current_app

class SystemClock:
    """Reads the current local time in the institution's timezone.

    Returned datetimes are naive local wall-clock values; the ledger stores
    them as-is and derives the attendance date from them.
    """

    def __init__(self, timezone_name: str):
        self.timezone = ZoneInfo(timezone_name)

    def now(self) -> datetime:
        return datetime.now(self.timezone).replace(tzinfo=None, microsecond=0)

def get_clock():
    """Clock attached to the running application."""
    return current_app.extensions['attendance_clock']
