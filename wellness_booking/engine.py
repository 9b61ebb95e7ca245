"""
Booking engine - the boundary the HTTP layer and payment webhook call into.
Wires catalog, calendar, pricing, hold creation and confirmation together.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.engine import Engine

from wellness_booking.business_calendar import BusinessCalendar
from wellness_booking.catalog import Catalog
from wellness_booking.database import get_session
from wellness_booking.db_models import Booking, Customer, Hold, utc_now
from wellness_booking.errors import BookingValidationError, Rejection
from wellness_booking.repositories import BookingRepository, CustomerRepository, HoldRepository
from wellness_booking.schemas import BundleHoldRequest, SingleHoldRequest
from wellness_booking.services.availability import AvailabilityPlanner, Slot
from wellness_booking.services.confirmation import ConfirmationFinalizer
from wellness_booking.services.hold_manager import HoldManager
from wellness_booking.services.hold_sweeper import HoldSweeper
from wellness_booking.services.pricing import PricingPolicy
from wellness_booking.services.slot_locks import SlotLockRegistry

logger = logging.getLogger(__name__)


class HoldKind(str, Enum):
    SINGLE = "single"
    BUNDLE = "bundle"


@dataclass(frozen=True)
class HoldPlaced:
    """Successful hold creation, referenced by hold ID or bundle group ID"""
    kind: HoldKind
    reference_id: str
    amount: int
    expires_at: datetime
    holds: List[Hold] = field(default_factory=list)

    ok = True

    def to_dict(self) -> Dict[str, Any]:
        key = "holdId" if self.kind is HoldKind.SINGLE else "groupId"
        return {"ok": True, key: self.reference_id, "amount": self.amount}


@dataclass(frozen=True)
class Confirmation:
    """Bookings created from a confirmed hold or bundle group"""
    kind: HoldKind
    bookings: List[Booking]
    bundle_id: Optional[str] = None

    ok = True

    def to_dict(self) -> Dict[str, Any]:
        result = {"ok": True, "kind": self.kind.value}
        if self.bundle_id:
            result["bundleId"] = self.bundle_id
        return result


def _parse_day(day: Union[date, str]) -> date:
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    try:
        return date.fromisoformat(day)
    except (TypeError, ValueError):
        raise BookingValidationError(f"Invalid date: {day!r}") from None


class BookingEngine:
    """
    Reservation engine facade.

    Scheduling conflicts and expired holds come back as ``Rejection`` values;
    bad input raises ``BookingValidationError``; store failures propagate.
    Engines serving one database from the same process should share a
    ``SlotLockRegistry`` through ``locks``.
    """

    def __init__(
        self,
        engine: Engine,
        catalog: Catalog,
        clock: Callable[[], datetime] = utc_now,
        locks: Optional[SlotLockRegistry] = None,
    ):
        self.engine = engine
        self.catalog = catalog
        self.clock = clock
        self.calendar = BusinessCalendar(catalog)
        self.pricing = PricingPolicy(catalog)
        self.planner = AvailabilityPlanner(engine, catalog, self.calendar, clock)
        self.holds = HoldManager(engine, catalog, self.calendar, self.pricing, locks, clock)
        self.finalizer = ConfirmationFinalizer(engine, catalog, self.pricing, clock)
        self.sweeper = HoldSweeper(engine, clock=clock)

    # Availability & pricing

    def get_availability(self, service_id: str, day: Union[date, str]) -> List[Slot]:
        return self.planner.slots_for(service_id, _parse_day(day))

    def quote_price(self, service_id: str, customer_email: Optional[str] = None) -> int:
        """Advisory price; the authoritative amount is fixed when the hold is created"""
        self.catalog.get_service(service_id)
        customer = self.get_customer(customer_email) if customer_email else None
        return self.pricing.price_for(service_id, customer)

    def describe_catalog(self) -> Dict[str, Any]:
        return self.catalog.describe()

    # Holds & confirmation

    def create_hold(
        self,
        kind: Union[HoldKind, str],
        payload: Mapping[str, Any],
        customer_email: Optional[str] = None,
    ) -> Union[HoldPlaced, Rejection]:
        """
        Place a single or bundle hold before a charge is issued.

        Raises:
            BookingValidationError: Unknown kind or malformed payload
        """
        kind = self._parse_kind(kind)
        try:
            if kind is HoldKind.SINGLE:
                request = SingleHoldRequest.model_validate(payload)
            else:
                request = BundleHoldRequest.model_validate(payload)
        except ValidationError as e:
            raise BookingValidationError(f"Invalid {kind.value} hold payload: {e}") from e

        if kind is HoldKind.SINGLE:
            result = self.holds.create_single_hold(
                request.service_id, request.start, customer_email
            )
            if isinstance(result, Rejection):
                return result
            return HoldPlaced(
                kind=kind,
                reference_id=result.id,
                amount=result.charge_amount,
                expires_at=result.expires_at,
                holds=[result],
            )

        result = self.holds.create_bundle_hold(
            request.bundle_id,
            request.selections,
            customer_email,
            self.pricing.bundle_price(request.bundle_id),
        )
        if isinstance(result, Rejection):
            return result
        return HoldPlaced(
            kind=kind,
            reference_id=result.group_id,
            amount=self.pricing.bundle_price(request.bundle_id),
            expires_at=result.expires_at,
            holds=result.holds,
        )

    def confirm(
        self,
        kind: Union[HoldKind, str],
        reference_id: str,
        payment_reference: str,
        fallback_email: Optional[str] = None,
    ) -> Union[Confirmation, Rejection]:
        """
        Finalize a paid hold or bundle group.

        Returns Rejection(hold-expired) when payment succeeded but the
        reservation did not survive; callers should refund or rebook.
        """
        kind = self._parse_kind(kind)
        if not reference_id or not payment_reference:
            raise BookingValidationError("reference_id and payment_reference are required")

        if kind is HoldKind.SINGLE:
            result = self.finalizer.confirm_single(reference_id, payment_reference, fallback_email)
            if isinstance(result, Rejection):
                return result
            return Confirmation(kind=kind, bookings=[result])

        result = self.finalizer.confirm_bundle(reference_id, payment_reference, fallback_email)
        if isinstance(result, Rejection):
            return result
        return Confirmation(kind=kind, bookings=result.bookings, bundle_id=result.bundle_id)

    def sweep_expired_holds(self) -> int:
        return self.sweeper.sweep_once()

    # Customers

    def register_customer(self, email: str, name: Optional[str] = None) -> Customer:
        """Look up a customer by email, creating one on first login"""
        if not email:
            raise BookingValidationError("email required")
        with get_session(self.engine) as session:
            return CustomerRepository(session).get_or_create_customer(email, name)

    def get_customer(self, email: str) -> Optional[Customer]:
        with get_session(self.engine) as session:
            return CustomerRepository(session).get_by_email(email)

    def grant_credit_pack(self, email: str) -> Customer:
        """Add a prepaid credit pack to an existing customer"""
        if not email:
            raise BookingValidationError("email required")
        with get_session(self.engine) as session:
            customer = CustomerRepository(session).add_credits(
                email, self.catalog.credit_pack_size
            )
        if customer is None:
            raise BookingValidationError(f"Unknown customer: {email}")
        logger.info(
            f"Granted {self.catalog.credit_pack_size} credits to {email}, "
            f"balance {customer.credit_balance}"
        )
        return customer

    def customer_bookings(self, email: str) -> List[Booking]:
        with get_session(self.engine) as session:
            return BookingRepository(session).get_customer_bookings(email)

    # Admin

    def overview(self) -> Dict[str, int]:
        """Counts of customers, bookings and live holds"""
        with get_session(self.engine) as session:
            return {
                "customers": CustomerRepository(session).count(),
                "bookings": BookingRepository(session).count(),
                "activeHolds": HoldRepository(session).count_live(self.clock()),
            }

    def live_holds(self) -> List[Hold]:
        with get_session(self.engine) as session:
            return HoldRepository(session).get_all_live(self.clock())

    def all_bookings(self) -> List[Booking]:
        with get_session(self.engine) as session:
            return BookingRepository(session).get_all_bookings()

    @staticmethod
    def _parse_kind(kind: Union[HoldKind, str]) -> HoldKind:
        try:
            return HoldKind(kind)
        except ValueError:
            raise BookingValidationError(f"Unknown hold kind: {kind!r}") from None
