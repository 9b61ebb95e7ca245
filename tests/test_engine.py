"""
Tests for the BookingEngine boundary: payload handling, customers and admin views
"""

import pytest

from conftest import MONDAY
from wellness_booking.engine import Confirmation, HoldKind, HoldPlaced
from wellness_booking.errors import BookingValidationError, Rejection, RejectionReason

BUNDLE_PAYLOAD = {
    "bundleId": "bundle_red_lymph",
    "selections": [
        {"service": "redlight", "startISO": "2030-06-03T08:00:00"},
        {"service": "lymph", "startISO": "2030-06-03T08:00:00"},
    ],
}


class TestCreateHold:
    """Tests for create_hold payload handling"""

    def test_single_hold(self, booking_engine):
        placed = booking_engine.create_hold(
            HoldKind.SINGLE, {"service": "sauna", "startISO": "2030-06-03T09:00:00"}
        )

        assert isinstance(placed, HoldPlaced)
        assert placed.amount == 1000
        assert placed.to_dict() == {"ok": True, "holdId": placed.reference_id, "amount": 1000}

    def test_bundle_hold(self, booking_engine):
        placed = booking_engine.create_hold("bundle", BUNDLE_PAYLOAD, "ana@example.com")

        assert placed.ok
        assert placed.amount == 1500
        assert len(placed.holds) == 2
        assert placed.to_dict()["groupId"] == placed.reference_id

    def test_snake_case_payload(self, booking_engine):
        placed = booking_engine.create_hold(
            "single", {"service_id": "sauna", "start": "2030-06-03T09:00:00"}
        )
        assert placed.ok

    def test_rejection_to_dict(self, booking_engine):
        result = booking_engine.create_hold(
            "single", {"service": "sauna", "startISO": "2030-06-03T05:00:00"}
        )

        assert isinstance(result, Rejection)
        payload = result.to_dict()
        assert payload["ok"] is False
        assert payload["reason"] == "outside-hours"
        assert payload["message"]

    def test_missing_fields(self, booking_engine):
        with pytest.raises(BookingValidationError):
            booking_engine.create_hold("single", {"service": "sauna"})

    def test_unknown_kind(self, booking_engine):
        with pytest.raises(BookingValidationError):
            booking_engine.create_hold("recurring", {"service": "sauna"})

    def test_bundle_selection_count_mismatch(self, booking_engine):
        payload = dict(BUNDLE_PAYLOAD, selections=BUNDLE_PAYLOAD["selections"][:1])
        with pytest.raises(BookingValidationError):
            booking_engine.create_hold("bundle", payload)


class TestConfirm:
    """Tests for confirm through the boundary"""

    def test_single_round_trip(self, booking_engine):
        placed = booking_engine.create_hold(
            "single", {"service": "sauna", "startISO": "2030-06-03T09:00:00"}
        )

        result = booking_engine.confirm("single", placed.reference_id, "cs_1", "ana@example.com")

        assert isinstance(result, Confirmation)
        assert result.to_dict() == {"ok": True, "kind": "single"}
        assert result.bookings[0].customer_email == "ana@example.com"

        again = booking_engine.confirm("single", placed.reference_id, "cs_1")
        assert again.reason is RejectionReason.HOLD_EXPIRED

    def test_bundle_round_trip(self, booking_engine):
        placed = booking_engine.create_hold("bundle", BUNDLE_PAYLOAD)

        result = booking_engine.confirm("bundle", placed.reference_id, "cs_2")

        assert result.to_dict() == {"ok": True, "kind": "bundle", "bundleId": "bundle_red_lymph"}
        assert len(result.bookings) == 2

    def test_requires_payment_reference(self, booking_engine):
        with pytest.raises(BookingValidationError):
            booking_engine.confirm("single", "abc", "")


class TestQuotePrice:
    def test_anonymous_quote(self, booking_engine):
        assert booking_engine.quote_price("hbot") == 7500

    def test_quote_is_stable(self, booking_engine):
        booking_engine.register_customer("ana@example.com")
        booking_engine.grant_credit_pack("ana@example.com")

        first = booking_engine.quote_price("hbot", "ana@example.com")
        assert first == booking_engine.quote_price("hbot", "ana@example.com") == 6000

    def test_unknown_service(self, booking_engine):
        with pytest.raises(BookingValidationError):
            booking_engine.quote_price("massage")


class TestCustomers:
    """Tests for customer registration and credit packs"""

    def test_register_customer(self, booking_engine):
        customer = booking_engine.register_customer("ana@example.com", "Ana")
        assert customer.name == "Ana"
        assert customer.credit_balance == 0

    def test_register_requires_email(self, booking_engine):
        with pytest.raises(BookingValidationError):
            booking_engine.register_customer("")

    def test_grant_credit_pack(self, booking_engine):
        booking_engine.register_customer("ana@example.com")

        customer = booking_engine.grant_credit_pack("ana@example.com")
        assert customer.credit_balance == 10

    def test_grant_unknown_customer(self, booking_engine):
        with pytest.raises(BookingValidationError):
            booking_engine.grant_credit_pack("nobody@example.com")

    def test_customer_bookings(self, booking_engine):
        for start in ("2030-06-03T09:00:00", "2030-06-03T11:00:00"):
            placed = booking_engine.create_hold(
                "single", {"service": "sauna", "startISO": start}, "ana@example.com"
            )
            booking_engine.confirm("single", placed.reference_id, "cs")

        bookings = booking_engine.customer_bookings("ana@example.com")
        assert [b.start_at.hour for b in bookings] == [11, 9]


class TestAdminViews:
    """Tests for overview and listings"""

    def test_overview(self, booking_engine, clock):
        booking_engine.register_customer("ana@example.com")
        placed = booking_engine.create_hold(
            "single", {"service": "sauna", "startISO": "2030-06-03T09:00:00"}
        )
        booking_engine.confirm("single", placed.reference_id, "cs")
        booking_engine.create_hold("bundle", BUNDLE_PAYLOAD)

        assert booking_engine.overview() == {"customers": 1, "bookings": 1, "activeHolds": 2}

        clock.advance(minutes=12)
        assert booking_engine.overview()["activeHolds"] == 0

    def test_live_holds_and_bookings(self, booking_engine):
        booking_engine.create_hold("bundle", BUNDLE_PAYLOAD)
        assert len(booking_engine.live_holds()) == 2
        assert booking_engine.all_bookings() == []

    def test_sweep_expired_holds(self, booking_engine, clock):
        booking_engine.create_hold("bundle", BUNDLE_PAYLOAD)
        clock.advance(minutes=20)

        assert booking_engine.sweep_expired_holds() == 2
        assert booking_engine.sweep_expired_holds() == 0

    def test_describe_catalog(self, booking_engine):
        assert "sauna" in booking_engine.describe_catalog()["services"]

    def test_availability_after_hold(self, booking_engine):
        before = len(booking_engine.get_availability("redlight", MONDAY))
        booking_engine.create_hold("bundle", BUNDLE_PAYLOAD)
        assert len(booking_engine.get_availability("redlight", MONDAY)) < before
