"""
Availability planner - lists bookable start times for a service on a date.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List

from sqlalchemy.engine import Engine

from wellness_booking.business_calendar import BusinessCalendar
from wellness_booking.catalog import Catalog
from wellness_booking.database import get_session
from wellness_booking.db_models import utc_now
from wellness_booking.repositories import BookingRepository, HoldRepository
from wellness_booking.services.conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    """A free start time and the service end it implies"""
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {"startISO": self.start.isoformat(), "endISO": self.end.isoformat()}


class AvailabilityPlanner:
    def __init__(
        self,
        engine: Engine,
        catalog: Catalog,
        calendar: BusinessCalendar,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.engine = engine
        self.catalog = catalog
        self.calendar = calendar
        self.clock = clock

    def slots_for(self, service_id: str, day: date) -> List[Slot]:
        """
        Walk the business window in fixed steps and keep conflict-free starts.

        Returns an empty list on closed days.
        """
        service = self.catalog.get_service(service_id)
        window = self.calendar.window_for(day)
        if window is None:
            return []

        step = timedelta(minutes=self.catalog.slot_minutes)
        duration = timedelta(minutes=service.duration_minutes)
        now = self.clock()
        slots: List[Slot] = []

        with get_session(self.engine) as session:
            checker = ConflictChecker(
                self.catalog, BookingRepository(session), HoldRepository(session)
            )
            cursor = window.open
            while cursor + duration <= window.close:
                interval = self.calendar.interval_for(service_id, cursor)
                if not checker.overlaps(service_id, interval, now):
                    slots.append(Slot(start=interval.start, end=interval.end))
                cursor += step

        logger.debug(f"{len(slots)} free slots for {service_id} on {day}")
        return slots
