"""
Hold manager - creates time-boxed reservations while a payment is pending.

Every check (hours, cutoff, conflicts) is re-run against current store state
inside the same transaction that inserts the hold, under a per-service lock.
Bundles are validated in full before any member hold is written.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from wellness_booking.business_calendar import BusinessCalendar, Interval
from wellness_booking.catalog import Catalog
from wellness_booking.database import get_session
from wellness_booking.db_models import Hold, new_id, utc_now
from wellness_booking.errors import BookingValidationError, Rejection, RejectionReason
from wellness_booking.repositories import BookingRepository, CustomerRepository, HoldRepository
from wellness_booking.schemas import BundleSelection
from wellness_booking.services.conflict_checker import ConflictChecker
from wellness_booking.services.pricing import PricingPolicy
from wellness_booking.services.slot_locks import SlotLockRegistry

logger = logging.getLogger(__name__)

HOLD_KIND_SINGLE = "single"
HOLD_KIND_BUNDLE = "bundle"


@dataclass(frozen=True)
class BundleHold:
    """Member holds of one bundle reservation, sharing group and expiry"""
    group_id: str
    bundle_id: str
    holds: List[Hold]
    expires_at: datetime

    ok = True


class HoldManager:
    def __init__(
        self,
        engine: Engine,
        catalog: Catalog,
        calendar: BusinessCalendar,
        pricing: PricingPolicy,
        locks: Optional[SlotLockRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.engine = engine
        self.catalog = catalog
        self.calendar = calendar
        self.pricing = pricing
        self.locks = locks or SlotLockRegistry()
        self.clock = clock

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.catalog.hold_ttl_minutes)

    def _check(
        self, checker: ConflictChecker, service_id: str, interval: Interval, now: datetime
    ) -> Optional[Rejection]:
        """Run the hours, cutoff and conflict checks in order"""
        window = self.calendar.window_for(interval.start.date())
        if not self.calendar.fits(window, interval):
            return Rejection.of(RejectionReason.OUTSIDE_HOURS)
        if not self.calendar.cutoff_ok(interval.start, now):
            return Rejection.of(RejectionReason.PAST_CUTOFF)
        if checker.overlaps(service_id, interval, now):
            return Rejection.of(RejectionReason.SLOT_UNAVAILABLE)
        return None

    def create_single_hold(
        self,
        service_id: str,
        start: Union[str, datetime],
        customer_email: Optional[str] = None,
        charge_amount: Optional[int] = None,
    ) -> Union[Hold, Rejection]:
        """
        Reserve one slot for ``hold_ttl_minutes``.

        Args:
            service_id: Catalog service ID
            start: Requested start (ISO string or datetime)
            customer_email: Customer identity, if known
            charge_amount: Amount to charge in minor units; resolved by pricing when omitted

        Returns:
            The persisted Hold, or a Rejection (outside-hours, past-cutoff, slot-unavailable)

        Raises:
            BookingValidationError: Unknown service or unparsable start
        """
        self.catalog.get_service(service_id)
        interval = self.calendar.interval_for(service_id, self.calendar.to_local(start))

        with self.locks.hold([service_id]):
            with get_session(self.engine) as session:
                now = self.clock()
                hold_repo = HoldRepository(session)
                checker = ConflictChecker(self.catalog, BookingRepository(session), hold_repo)

                rejection = self._check(checker, service_id, interval, now)
                if rejection:
                    logger.info(
                        f"Hold rejected for {service_id} at {interval.start}: {rejection.reason.value}"
                    )
                    return rejection

                if charge_amount is None:
                    customer = (
                        CustomerRepository(session).get_by_email(customer_email)
                        if customer_email
                        else None
                    )
                    charge_amount = self.pricing.price_for(service_id, customer)

                hold_id = new_id()
                hold = Hold(
                    id=hold_id,
                    kind=HOLD_KIND_SINGLE,
                    group_id=hold_id,
                    service_id=service_id,
                    start_at=interval.start,
                    end_at=interval.end,
                    end_with_buffer_at=interval.end_with_buffer,
                    customer_email=customer_email,
                    charge_amount=charge_amount,
                    created_at=now,
                    expires_at=now + self.ttl,
                )

                hold_repo.purge_expired(now)
                try:
                    hold_repo.insert(hold)
                except IntegrityError:
                    session.rollback()
                    logger.warning(
                        f"Concurrent hold detected for {service_id} at {interval.start}"
                    )
                    return Rejection.of(RejectionReason.SLOT_UNAVAILABLE)

        logger.info(
            f"Hold {hold.id} placed for {service_id} at {interval.start}, "
            f"expires {hold.expires_at}"
        )
        return hold

    def create_bundle_hold(
        self,
        bundle_id: str,
        selections: Sequence[BundleSelection],
        customer_email: Optional[str] = None,
        total_charge_amount: Optional[int] = None,
    ) -> Union[BundleHold, Rejection]:
        """
        Reserve every slot of a bundle, or none of them.

        Each member hold carries the bundle's total charge.

        Raises:
            BookingValidationError: Unknown bundle, or selections that do not
                match the bundle's services one-to-one and in order
        """
        bundle = self.catalog.get_bundle(bundle_id)
        if len(selections) != len(bundle.service_ids):
            raise BookingValidationError(
                f"Bundle {bundle_id} needs {len(bundle.service_ids)} selections, "
                f"got {len(selections)}"
            )

        intervals: List[Interval] = []
        for expected, selection in zip(bundle.service_ids, selections):
            if selection.service_id != expected:
                raise BookingValidationError(
                    f"Selections must match bundle services in order: "
                    f"expected {expected!r}, got {selection.service_id!r}"
                )
            intervals.append(
                self.calendar.interval_for(expected, self.calendar.to_local(selection.start))
            )

        amount = bundle.price if total_charge_amount is None else total_charge_amount

        with self.locks.hold(bundle.service_ids):
            with get_session(self.engine) as session:
                now = self.clock()
                hold_repo = HoldRepository(session)
                checker = ConflictChecker(self.catalog, BookingRepository(session), hold_repo)

                for index, (service_id, interval) in enumerate(
                    zip(bundle.service_ids, intervals)
                ):
                    rejection = self._check(checker, service_id, interval, now)
                    if rejection is None and any(
                        other_id == service_id
                        and interval.overlaps(other.start, other.end_with_buffer)
                        for other_id, other in zip(bundle.service_ids[:index], intervals[:index])
                    ):
                        rejection = Rejection.of(RejectionReason.SLOT_UNAVAILABLE)
                    if rejection:
                        logger.info(
                            f"Bundle hold rejected for {bundle_id} "
                            f"({service_id} at {interval.start}): {rejection.reason.value}"
                        )
                        return rejection

                group_id = new_id()
                expires_at = now + self.ttl
                holds = [
                    Hold(
                        kind=HOLD_KIND_BUNDLE,
                        group_id=group_id,
                        bundle_id=bundle_id,
                        service_id=service_id,
                        start_at=interval.start,
                        end_at=interval.end,
                        end_with_buffer_at=interval.end_with_buffer,
                        customer_email=customer_email,
                        charge_amount=amount,
                        created_at=now,
                        expires_at=expires_at,
                    )
                    for service_id, interval in zip(bundle.service_ids, intervals)
                ]

                hold_repo.purge_expired(now)
                try:
                    hold_repo.insert_many(holds)
                except IntegrityError:
                    session.rollback()
                    logger.warning(f"Concurrent hold detected for bundle {bundle_id}")
                    return Rejection.of(RejectionReason.SLOT_UNAVAILABLE)

        logger.info(
            f"Bundle hold {group_id} placed for {bundle_id} "
            f"({len(holds)} holds), expires {expires_at}"
        )
        return BundleHold(
            group_id=group_id, bundle_id=bundle_id, holds=holds, expires_at=expires_at
        )
