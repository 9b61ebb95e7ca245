"""
Tests for the availability planner
"""

from datetime import datetime, time

from conftest import MONDAY, SUNDAY, TUESDAY
from wellness_booking.database import get_session
from wellness_booking.db_models import Booking
from wellness_booking.repositories import BookingRepository


def starts(slots):
    return [slot.start.time() for slot in slots]


def add_booking(db_engine, service_id, start, end):
    with get_session(db_engine) as session:
        BookingRepository(session).insert(
            Booking(service_id=service_id, start_at=start, end_at=end, payment_reference="cs_x")
        )


class TestSlotGrid:
    """Tests for the slot walk over an empty calendar"""

    def test_monday_sauna_grid(self, booking_engine):
        """Test 15-minute sauna on an open Monday lists 07:00 through 17:45"""
        slots = booking_engine.get_availability("sauna", MONDAY)

        assert len(slots) == 44
        assert slots[0].start == datetime(2030, 6, 3, 7, 0)
        assert slots[1].start == datetime(2030, 6, 3, 7, 15)
        assert slots[-1].start == datetime(2030, 6, 3, 17, 45)
        assert slots[-1].end == datetime(2030, 6, 3, 18, 0)

    def test_tuesday_hbot_last_start(self, booking_engine):
        """Test the last 60-minute start before a noon close is 11:00"""
        slots = booking_engine.get_availability("hbot", TUESDAY)

        assert starts(slots)[-1] == time(11, 0)
        assert len(slots) == 17

    def test_closed_day(self, booking_engine):
        assert booking_engine.get_availability("sauna", SUNDAY) == []

    def test_accepts_iso_date(self, booking_engine):
        assert len(booking_engine.get_availability("sauna", "2030-06-03")) == 44

    def test_slot_to_dict(self, booking_engine):
        slot = booking_engine.get_availability("sauna", MONDAY)[0]
        assert slot.to_dict() == {
            "startISO": "2030-06-03T07:00:00",
            "endISO": "2030-06-03T07:15:00",
        }


class TestConflicts:
    """Tests for slots removed by bookings and holds"""

    def test_booking_blocks_touching_slots(self, booking_engine, db_engine):
        """Test inclusive overlap removes the slots that merely touch a booking"""
        add_booking(db_engine, "sauna", datetime(2030, 6, 3, 9, 0), datetime(2030, 6, 3, 9, 15))

        free = starts(booking_engine.get_availability("sauna", MONDAY))

        assert len(free) == 41
        for blocked in (time(8, 45), time(9, 0), time(9, 15)):
            assert blocked not in free
        assert time(8, 30) in free
        assert time(9, 30) in free

    def test_booking_buffer_blocks_later_slots(self, booking_engine, db_engine):
        """Test an hbot booking's 30-minute buffer keeps later starts free of overlap"""
        add_booking(db_engine, "hbot", datetime(2030, 6, 4, 9, 0), datetime(2030, 6, 4, 10, 0))

        free = starts(booking_engine.get_availability("hbot", TUESDAY))

        assert free == [time(7, 0), time(7, 15), time(10, 45), time(11, 0)]

    def test_other_service_unaffected(self, booking_engine, db_engine):
        add_booking(db_engine, "sauna", datetime(2030, 6, 3, 9, 0), datetime(2030, 6, 3, 9, 15))
        assert len(booking_engine.get_availability("lymph", MONDAY)) == 44

    def test_hold_removes_slot(self, booking_engine):
        """Test a fresh hold is no longer offered"""
        placed = booking_engine.create_hold(
            "single", {"service": "sauna", "startISO": "2030-06-03T10:00:00"}
        )
        assert placed.ok

        free = starts(booking_engine.get_availability("sauna", MONDAY))
        assert time(10, 0) not in free

    def test_expired_hold_frees_slot(self, booking_engine, clock):
        """Test an expired but unswept hold does not block availability"""
        booking_engine.create_hold(
            "single", {"service": "sauna", "startISO": "2030-06-03T10:00:00"}
        )
        clock.advance(minutes=12)

        free = starts(booking_engine.get_availability("sauna", MONDAY))
        assert time(10, 0) in free
        assert len(free) == 44

    def test_repeated_queries_identical(self, booking_engine, db_engine):
        """Test availability is a pure function of store state"""
        add_booking(db_engine, "sauna", datetime(2030, 6, 3, 12, 0), datetime(2030, 6, 3, 12, 15))

        first = booking_engine.get_availability("sauna", MONDAY)
        second = booking_engine.get_availability("sauna", MONDAY)
        assert first == second
