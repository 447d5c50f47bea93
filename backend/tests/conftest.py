"""Shared test setup: a temporary reference datastore and clean singletons."""

import os
import tempfile

import pytest

# Use a temporary database for testing; must be set before the app is imported
test_db = tempfile.NamedTemporaryFile(suffix='.db', delete=False)
test_db.close()
os.environ["DATABASE_URL"] = f"sqlite:///{test_db.name}"

from oyster.config import settings  # noqa: E402
from oyster.models import Station  # noqa: E402
from oyster.services.station_directory import InMemoryStationDirectory  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_reference_data():
    """Rebuild cached stations, fares and resolver for every test."""
    settings.reload_reference_data()
    yield
    settings.reload_reference_data()


@pytest.fixture
def reference_stations() -> InMemoryStationDirectory:
    return InMemoryStationDirectory(settings.default_stations())


@pytest.fixture
def custom_stations() -> InMemoryStationDirectory:
    """A small network with a boundary station and an outer zone."""
    return InMemoryStationDirectory([
        Station(name="Central", zones={1}),
        Station(name="Boundary", zones={1, 2}),
        Station(name="Middle", zones={2}),
        Station(name="Outer", zones={3}),
        Station(name="Far", zones={5}),
    ])
