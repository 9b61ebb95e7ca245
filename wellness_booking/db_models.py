"""
Database models using SQLModel
Provides type-safe ORM with Pydantic validation
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (how bookkeeping instants are stored)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


# Wall-clock and UTC instants are both stored without tzinfo
NAIVE_DATETIME = DateTime(timezone=False)


class Customer(SQLModel, table=True):
    """Customer database model"""

    __tablename__ = "customers"

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    name: str = Field(default="", max_length=255)
    credit_balance: int = Field(default=0, ge=0)  # Prepaid credits for the credit service
    created_at: datetime = Field(default_factory=utc_now, sa_type=NAIVE_DATETIME)


class Hold(SQLModel, table=True):
    """Time-boxed reservation kept while payment is pending"""

    __tablename__ = "holds"
    __table_args__ = (
        UniqueConstraint("service_id", "start_at", name="uq_holds_service_start"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    kind: str = Field(max_length=10)  # single, bundle
    group_id: str = Field(index=True, max_length=32)  # equals id for single holds
    bundle_id: Optional[str] = Field(default=None, max_length=64)
    service_id: str = Field(index=True, max_length=32)

    # Studio-local wall clock
    start_at: datetime = Field(index=True, sa_type=NAIVE_DATETIME)
    end_at: datetime = Field(sa_type=NAIVE_DATETIME)
    end_with_buffer_at: datetime = Field(sa_type=NAIVE_DATETIME)

    customer_email: Optional[str] = Field(default=None, max_length=255)
    charge_amount: int = Field(ge=0)  # Minor currency units

    # Metadata (UTC)
    created_at: datetime = Field(default_factory=utc_now, sa_type=NAIVE_DATETIME)
    expires_at: datetime = Field(index=True, sa_type=NAIVE_DATETIME)

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


class Booking(SQLModel, table=True):
    """Confirmed, permanent reservation"""

    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("service_id", "start_at", name="uq_bookings_service_start"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    group_id: Optional[str] = Field(default=None, index=True, max_length=32)
    bundle_id: Optional[str] = Field(default=None, max_length=64)
    service_id: str = Field(index=True, max_length=32)

    # Studio-local wall clock
    start_at: datetime = Field(index=True, sa_type=NAIVE_DATETIME)
    end_at: datetime = Field(sa_type=NAIVE_DATETIME)

    customer_email: Optional[str] = Field(default=None, index=True, max_length=255)
    payment_reference: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=utc_now, sa_type=NAIVE_DATETIME)
