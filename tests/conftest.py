"""
Shared fixtures: in-memory database, fixed clock, services and API client.
"""
import os

# Settings are read at import time; keep tests off the filesystem and in UTC
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from cubicle_booking.config.settings import get_settings
from cubicle_booking.core.events import ChangeFeed
from cubicle_booking.db.init_db import init_db, seed_cubicles
from cubicle_booking.db.notifications import install_change_notifications
from cubicle_booking.db.session import build_session_factory
from cubicle_booking.main import create_app
from cubicle_booking.schemas.student import StudentCreate
from cubicle_booking.services import RentalLifecycleService, StudentDirectoryService


class FixedClock:
    """Clock returning a settable UTC instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ManualTimer:
    """Monotonic timer that only moves when advanced."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 5, 15, 15, 0, tzinfo=timezone.utc))


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine, feed, settings):
    factory = build_session_factory(engine)
    install_change_notifications(factory, feed)
    seed_cubicles(factory)
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def directory(db, settings):
    return StudentDirectoryService(db, settings)


@pytest.fixture
def lifecycle(db, settings, clock):
    return RentalLifecycleService(db, settings, clock)


@pytest.fixture
def ana(directory):
    """A registered student."""
    return directory.register(
        StudentCreate(name="Ana Lopez", control_number="20210099", career="Arquitectura")
    ).unwrap()


@pytest.fixture
def luis(directory):
    return directory.register(
        StudentCreate(name="Luis Pérez", control_number="20190001", career="Ingeniería Civil")
    ).unwrap()


@pytest.fixture
def app(session_factory, settings, clock, feed):
    return create_app(session_factory, settings, clock, feed, configure_logging=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
