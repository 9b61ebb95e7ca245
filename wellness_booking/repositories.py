"""
Repository pattern for database access
Provides clean separation between business logic and data access

Hold and booking writes are flushed, not committed: the surrounding
``get_session`` scope commits them together so multi-row changes stay atomic.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, update
from sqlmodel import Session, select, delete

from wellness_booking.db_models import Booking, Customer, Hold


class CustomerRepository:
    """Repository for Customer operations"""

    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[Customer]:
        """Get customer by email"""
        statement = select(Customer).where(Customer.email == email)
        return self.session.exec(statement).first()

    def create_customer(self, email: str, name: str = "") -> Customer:
        """Create new customer with no credits"""
        customer = Customer(email=email, name=name)
        self.session.add(customer)
        self.session.commit()
        self.session.refresh(customer)
        return customer

    def get_or_create_customer(self, email: str, name: Optional[str] = None) -> Customer:
        """Get existing customer or create new one, filling in a missing name"""
        customer = self.get_by_email(email)
        if customer is None:
            return self.create_customer(email, name or "")
        if name and not customer.name:
            customer.name = name
            self.session.commit()
            self.session.refresh(customer)
        return customer

    def add_credits(self, email: str, amount: int) -> Optional[Customer]:
        """Increment a customer's credit balance"""
        statement = (
            update(Customer)
            .where(Customer.email == email)
            .values(credit_balance=Customer.credit_balance + amount)
        )
        result = self.session.exec(statement)
        if result.rowcount == 0:
            return None
        self.session.commit()
        customer = self.get_by_email(email)
        self.session.refresh(customer)
        return customer

    def consume_credit(self, email: str) -> bool:
        """Decrement the balance by one if it is positive"""
        statement = (
            update(Customer)
            .where(Customer.email == email, Customer.credit_balance > 0)
            .values(credit_balance=Customer.credit_balance - 1)
        )
        result = self.session.exec(statement)
        return result.rowcount > 0

    def count(self) -> int:
        statement = select(func.count()).select_from(Customer)
        return self.session.exec(statement).one()


class HoldRepository:
    """Repository for Hold operations"""

    def __init__(self, session: Session):
        self.session = session

    def insert(self, hold: Hold) -> Hold:
        """Add a hold to the current transaction"""
        self.session.add(hold)
        self.session.flush()
        return hold

    def insert_many(self, holds: Sequence[Hold]) -> List[Hold]:
        """Add several holds to the current transaction"""
        self.session.add_all(holds)
        self.session.flush()
        return list(holds)

    def get_live(self, hold_id: str, now: datetime) -> Optional[Hold]:
        """Get a hold by ID if it has not expired"""
        statement = select(Hold).where(Hold.id == hold_id, Hold.expires_at > now)
        return self.session.exec(statement).first()

    def find_live_by_service_and_range(
        self, service_id: str, range_start: datetime, range_end: datetime, now: datetime
    ) -> List[Hold]:
        """Live holds for a service whose buffered interval touches the range"""
        statement = select(Hold).where(
            Hold.service_id == service_id,
            Hold.expires_at > now,
            Hold.start_at <= range_end,
            Hold.end_with_buffer_at >= range_start,
        )
        return list(self.session.exec(statement))

    def find_by_group(self, group_id: str, kind: str = "bundle") -> List[Hold]:
        """All holds of a group, expired ones included"""
        statement = (
            select(Hold)
            .where(Hold.group_id == group_id, Hold.kind == kind)
            .order_by(Hold.start_at)
        )
        return list(self.session.exec(statement))

    def delete(self, hold_id: str) -> bool:
        """Delete a hold; False if it was already gone"""
        statement = delete(Hold).where(Hold.id == hold_id)
        result = self.session.exec(statement)
        return result.rowcount > 0

    def delete_group(self, group_id: str) -> int:
        """Delete every hold in a group"""
        statement = delete(Hold).where(Hold.group_id == group_id)
        result = self.session.exec(statement)
        return result.rowcount

    def purge_expired(self, now: datetime) -> int:
        """Delete all expired holds"""
        statement = delete(Hold).where(Hold.expires_at <= now)
        result = self.session.exec(statement)
        return result.rowcount

    def count_live(self, now: datetime) -> int:
        statement = select(func.count()).select_from(Hold).where(Hold.expires_at > now)
        return self.session.exec(statement).one()

    def get_all_live(self, now: datetime, limit: int = 500) -> List[Hold]:
        """Get all live holds, soonest expiry first"""
        statement = (
            select(Hold)
            .where(Hold.expires_at > now)
            .order_by(Hold.expires_at)
            .limit(limit)
        )
        return list(self.session.exec(statement))


class BookingRepository:
    """Repository for Booking operations"""

    def __init__(self, session: Session):
        self.session = session

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.session.get(Booking, booking_id)

    def insert(self, booking: Booking) -> Booking:
        """Add a booking to the current transaction"""
        self.session.add(booking)
        self.session.flush()
        return booking

    def insert_many(self, bookings: Sequence[Booking]) -> List[Booking]:
        """Add a batch of bookings to the current transaction"""
        self.session.add_all(bookings)
        self.session.flush()
        return list(bookings)

    def find_by_service_and_range(
        self, service_id: str, range_start: datetime, range_end: datetime
    ) -> List[Booking]:
        """Bookings for a service whose unbuffered interval touches the range"""
        statement = select(Booking).where(
            Booking.service_id == service_id,
            Booking.start_at <= range_end,
            Booking.end_at >= range_start,
        )
        return list(self.session.exec(statement))

    def find_by_group(self, group_id: str) -> List[Booking]:
        statement = (
            select(Booking).where(Booking.group_id == group_id).order_by(Booking.start_at)
        )
        return list(self.session.exec(statement))

    def get_customer_bookings(self, email: str, limit: int = 200) -> List[Booking]:
        """Get a customer's bookings, latest start first"""
        statement = (
            select(Booking)
            .where(Booking.customer_email == email)
            .order_by(Booking.start_at.desc())
            .limit(limit)
        )
        return list(self.session.exec(statement))

    def get_all_bookings(self, limit: int = 500) -> List[Booking]:
        """Get all bookings ordered by start"""
        statement = select(Booking).order_by(Booking.start_at).limit(limit)
        return list(self.session.exec(statement))

    def count(self) -> int:
        statement = select(func.count()).select_from(Booking)
        return self.session.exec(statement).one()
