"""
Pytest configuration and fixtures for the housekeeping backend.
"""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.pool import StaticPool

from app import MemoryStore
from crud import DbStore
from database import init_db, make_engine, make_session_factory


TIMEZONE = ZoneInfo("America/New_York")


class FixedClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 6, 14, 23, 59, 0, tzinfo=TIMEZONE))


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def db_store():
    """DbStore over a private in-memory SQLite database."""
    engine = make_engine("sqlite://", echo=False, poolclass=StaticPool)
    init_db(engine)
    yield DbStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "db"])
def store(request):
    """Runs a test once against each data-access store."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def staff(store):
    return {
        "alice": store.create_user({"name": "Alice Johnson", "email": "alice@example.com", "role": "room_attendant"}),
        "bob": store.create_user({"name": "Bob Smith", "email": "bob@example.com", "role": "room_attendant"}),
    }


def make_room(store, number, status, **extra):
    return store.create_room({"number": number, "type": "Standard", "floor": 1, "status": status, **extra})
