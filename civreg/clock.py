from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def format_display(dt: datetime) -> str:
    """
    Render a timestamp the way the registry sheets store it, e.g.
    "3/7/2025, 9:05:02 PM" (no zero padding on month, day and hour).
    """
    hour12 = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt.month}/{dt.day}/{dt.year}, {hour12}:{dt.minute:02d}:{dt.second:02d} {meridiem}"


class Clock:
    def __init__(self, tz_name: str = "Asia/Jakarta") -> None:
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)

    def timestamp(self) -> int:
        return int(self.now().timestamp())

    def display(self) -> str:
        return format_display(self.now())


class FixedClock(Clock):
    """Clock pinned to a given instant; advance() moves it forward."""

    def __init__(self, at: datetime, tz_name: Optional[str] = None) -> None:
        super().__init__(tz_name or "UTC")
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        self._at = at

    def now(self) -> datetime:
        return self._at.astimezone(self.tz)

    def advance(self, seconds: float) -> None:
        self._at = self._at + timedelta(seconds=seconds)
