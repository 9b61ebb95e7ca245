"""
Pytest configuration and shared fixtures for tests
"""

from datetime import date, datetime, timedelta

import pytest
from sqlmodel import Session
from sqlalchemy.pool import StaticPool

from wellness_booking.catalog import build_catalog
from wellness_booking.config import BookingConfig
from wellness_booking.database import create_db_engine, init_database
from wellness_booking.engine import BookingEngine

MONDAY = date(2030, 6, 3)
TUESDAY = date(2030, 6, 4)
SUNDAY = date(2030, 6, 9)


class FakeClock:
    """Controllable naive-UTC clock"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_config(**overrides) -> BookingConfig:
    values = dict(
        timezone="America/Chicago",
        slot_minutes=15,
        same_day_cutoff_minutes=0,
        hold_ttl_minutes=12,
        credit_service_id="hbot",
        credit_price=6000,
        credit_pack_size=10,
    )
    values.update(overrides)
    return BookingConfig(_env_file=None, **values)


@pytest.fixture(name="clock")
def clock_fixture():
    """Saturday before the test week, 10:00 studio time"""
    return FakeClock(datetime(2030, 6, 1, 15, 0))


@pytest.fixture(name="config")
def config_fixture():
    return make_config()


@pytest.fixture(name="catalog")
def catalog_fixture(config):
    return build_catalog(config)


@pytest.fixture(name="db_engine")
def db_engine_fixture():
    """Create in-memory SQLite database engine for testing"""
    engine = create_db_engine(
        "sqlite://",
        poolclass=StaticPool,  # Keep single connection for in-memory DB
    )
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="db_session")
def db_session_fixture(db_engine):
    """Create database session for testing"""
    with Session(db_engine, expire_on_commit=False) as session:
        yield session
        session.rollback()  # Rollback any uncommitted changes after test


@pytest.fixture(name="booking_engine")
def booking_engine_fixture(db_engine, catalog, clock):
    return BookingEngine(db_engine, catalog, clock=clock)
