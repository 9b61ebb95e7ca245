"""
Conflict checker - decides whether a candidate interval collides with
confirmed bookings or live holds for the same service.
"""

import logging
from datetime import datetime, timedelta

from wellness_booking.business_calendar import Interval
from wellness_booking.catalog import Catalog
from wellness_booking.repositories import BookingRepository, HoldRepository

logger = logging.getLogger(__name__)


class ConflictChecker:
    """Session-scoped overlap query against bookings and live holds"""

    def __init__(self, catalog: Catalog, bookings: BookingRepository, holds: HoldRepository):
        self.catalog = catalog
        self.bookings = bookings
        self.holds = holds

    def overlaps(self, service_id: str, candidate: Interval, now: datetime) -> bool:
        """
        Check a candidate against existing reservations for a service.

        Args:
            service_id: Catalog service ID
            candidate: Interval to test, buffer included
            now: Current naive UTC time, decides which holds are live

        Returns:
            True on the first conflict found
        """
        buffer = timedelta(minutes=self.catalog.get_service(service_id).buffer_minutes)

        # A booking's stored end excludes its buffer, so widen the lower bound
        bookings = self.bookings.find_by_service_and_range(
            service_id, candidate.start - buffer, candidate.end_with_buffer
        )
        for booking in bookings:
            if candidate.overlaps(booking.start_at, booking.end_at + buffer):
                logger.debug(
                    f"{service_id} {candidate.start} conflicts with booking {booking.id}"
                )
                return True

        holds = self.holds.find_live_by_service_and_range(
            service_id, candidate.start, candidate.end_with_buffer, now
        )
        for hold in holds:
            if candidate.overlaps(hold.start_at, hold.end_with_buffer_at):
                logger.debug(f"{service_id} {candidate.start} conflicts with hold {hold.id}")
                return True

        return False
