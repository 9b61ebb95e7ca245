"""
Confirmation finalizer - turns live holds into permanent bookings once
payment has completed.

A hold is claimed by deleting it inside the same transaction that inserts
the booking; if the delete finds nothing, another confirmation or the sweeper
got there first and the caller gets ``hold-expired``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from sqlalchemy.engine import Engine

from wellness_booking.catalog import Catalog
from wellness_booking.database import get_session
from wellness_booking.db_models import Booking, Hold, utc_now
from wellness_booking.errors import Rejection, RejectionReason
from wellness_booking.repositories import BookingRepository, CustomerRepository, HoldRepository
from wellness_booking.services.hold_manager import HOLD_KIND_SINGLE
from wellness_booking.services.pricing import PricingPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundleConfirmation:
    group_id: str
    bundle_id: Optional[str]
    bookings: List[Booking]

    ok = True


def _booking_from_hold(
    hold: Hold,
    customer_email: Optional[str],
    payment_reference: str,
    now: datetime,
    group_id: Optional[str] = None,
) -> Booking:
    return Booking(
        group_id=group_id,
        bundle_id=hold.bundle_id,
        service_id=hold.service_id,
        start_at=hold.start_at,
        end_at=hold.end_at,
        customer_email=customer_email,
        payment_reference=payment_reference,
        created_at=now,
    )


class ConfirmationFinalizer:
    def __init__(
        self,
        engine: Engine,
        catalog: Catalog,
        pricing: PricingPolicy,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.engine = engine
        self.catalog = catalog
        self.pricing = pricing
        self.clock = clock

    def confirm_single(
        self, hold_id: str, payment_reference: str, fallback_email: Optional[str] = None
    ) -> Union[Booking, Rejection]:
        """
        Convert a live single hold into a booking.

        Args:
            hold_id: Hold to confirm
            payment_reference: External payment ID stored on the booking
            fallback_email: Identity used when the hold has none

        Returns:
            The new Booking, or Rejection(hold-expired) if the hold is gone
        """
        with get_session(self.engine) as session:
            now = self.clock()
            holds = HoldRepository(session)
            hold = holds.get_live(hold_id, now)
            if hold is None or hold.kind != HOLD_KIND_SINGLE:
                logger.warning(
                    f"Payment {payment_reference} arrived for missing or expired hold {hold_id}"
                )
                return Rejection.of(RejectionReason.HOLD_EXPIRED)

            if not holds.delete(hold_id):
                session.rollback()
                logger.warning(f"Hold {hold_id} was consumed concurrently")
                return Rejection.of(RejectionReason.HOLD_EXPIRED)

            email = hold.customer_email or fallback_email
            booking = BookingRepository(session).insert(
                _booking_from_hold(hold, email, payment_reference, now)
            )

            if email:
                customers = CustomerRepository(session)
                customer = customers.get_by_email(email)
                if self.pricing.consumes_credit(hold.service_id, hold.charge_amount, customer):
                    customers.consume_credit(email)
                    logger.info(f"Consumed one {hold.service_id} credit for {email}")

        logger.info(
            f"Booking {booking.id} confirmed for {booking.service_id} at {booking.start_at}"
        )
        return booking

    def confirm_bundle(
        self, group_id: str, payment_reference: str, fallback_email: Optional[str] = None
    ) -> Union[BundleConfirmation, Rejection]:
        """
        Convert every hold of a bundle group into bookings.

        If any member hold is expired or missing the whole group counts as
        expired: leftover holds are removed and nothing is booked.
        """
        with get_session(self.engine) as session:
            now = self.clock()
            holds = HoldRepository(session)
            members = holds.find_by_group(group_id)
            if not members:
                logger.warning(
                    f"Payment {payment_reference} arrived for missing bundle group {group_id}"
                )
                return Rejection.of(RejectionReason.HOLD_EXPIRED)

            bundle_id = members[0].bundle_id
            bundle = self.catalog.bundles.get(bundle_id)
            expected = len(bundle.service_ids) if bundle else len(members)
            if len(members) < expected or not all(h.is_live(now) for h in members):
                removed = holds.delete_group(group_id)
                logger.warning(
                    f"Bundle group {group_id} partially expired, released {removed} holds "
                    f"(payment {payment_reference})"
                )
                return Rejection.of(RejectionReason.HOLD_EXPIRED)

            if holds.delete_group(group_id) != len(members):
                session.rollback()
                logger.warning(f"Bundle group {group_id} was consumed concurrently")
                return Rejection.of(RejectionReason.HOLD_EXPIRED)

            email = members[0].customer_email or fallback_email
            bookings = BookingRepository(session).insert_many(
                [
                    _booking_from_hold(hold, email, payment_reference, now, group_id=group_id)
                    for hold in members
                ]
            )

        logger.info(f"Bundle {bundle_id} confirmed: {len(bookings)} bookings in {group_id}")
        return BundleConfirmation(group_id=group_id, bundle_id=bundle_id, bookings=bookings)
