"""
Business calendar: opening windows, service intervals and the same-day cutoff.

Slot instants are naive wall-clock datetimes in the studio timezone. The
clock, by contrast, supplies naive UTC; ``local_now`` bridges the two.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from wellness_booking.catalog import Catalog
from wellness_booking.errors import BookingValidationError


@dataclass(frozen=True)
class BusinessWindow:
    open: datetime
    close: datetime


@dataclass(frozen=True)
class Interval:
    """A service occurrence; the buffer is unreservable turnover time"""
    start: datetime
    end: datetime
    end_with_buffer: datetime

    def overlaps(self, start: datetime, end_with_buffer: datetime) -> bool:
        """Inclusive overlap: touching endpoints count as a conflict"""
        return self.start <= end_with_buffer and start <= self.end_with_buffer


def _parse_hhmm(value: str) -> time:
    hours, minutes = (int(part) for part in value.split(":"))
    return time(hour=hours, minute=minutes)


class BusinessCalendar:
    """Pure calendar computations over the catalog's weekly hours"""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.zone = ZoneInfo(catalog.timezone)

    def window_for(self, day: date) -> Optional[BusinessWindow]:
        """Opening window for a date, or None when the studio is closed"""
        if isinstance(day, datetime):
            day = day.date()
        hours = self.catalog.weekly_hours.get(day.isoweekday() % 7)
        if hours is None:
            return None
        return BusinessWindow(
            open=datetime.combine(day, _parse_hhmm(hours.open)),
            close=datetime.combine(day, _parse_hhmm(hours.close)),
        )

    def interval_for(self, service_id: str, start: datetime) -> Interval:
        service = self.catalog.get_service(service_id)
        end = start + timedelta(minutes=service.duration_minutes)
        return Interval(
            start=start,
            end=end,
            end_with_buffer=end + timedelta(minutes=service.buffer_minutes),
        )

    def fits(self, window: Optional[BusinessWindow], interval: Interval) -> bool:
        """
        True if the service runs inside the window.

        Only the service end is held to closing time; buffer time may run past
        close because it is turnover, not customer-facing service.
        """
        if window is None:
            return False
        return interval.start >= window.open and interval.end <= window.close

    def local_now(self, now: datetime) -> datetime:
        """Convert a naive UTC instant to studio wall-clock time"""
        return now.replace(tzinfo=timezone.utc).astimezone(self.zone).replace(tzinfo=None)

    def cutoff_ok(self, start: datetime, now: datetime) -> bool:
        """
        True if ``start`` is still bookable given the same-day cutoff.

        ``now`` is naive UTC. Starts on other days are never cut off.
        """
        cutoff = self.catalog.same_day_cutoff_minutes
        if not cutoff:
            return True
        local_now = self.local_now(now)
        if start.date() != local_now.date():
            return True
        return (start - local_now) >= timedelta(minutes=cutoff)

    def to_local(self, value: Union[str, datetime]) -> datetime:
        """Convert a caller-supplied start to naive studio wall-clock time, unrounded"""
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError:
                raise BookingValidationError(f"Invalid start time: {value!r}") from None
        if not isinstance(value, datetime):
            raise BookingValidationError(f"Invalid start time: {value!r}")
        if value.tzinfo is not None:
            value = value.astimezone(self.zone).replace(tzinfo=None)
        return value
