"""Tests for the reference data store and configuration loading."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from oyster.config import settings
from oyster.database import DatabaseManager
from oyster.models import FareTable, Station


class TestDatabase:
    """Test database functionality."""

    @pytest.fixture(autouse=True)
    def db(self, tmp_path):
        self.db = DatabaseManager(f"sqlite:///{tmp_path / 'reference.db'}")
        self.db.init_default_reference_data()
        yield
        self.db.engine.dispose()

    def test_database_initialization(self):
        stations = self.db.get_all_stations()
        assert len(stations) == len(settings.DEFAULT_STATIONS)
        assert [s.name for s in stations] == sorted(name for name, _ in settings.DEFAULT_STATIONS)

    def test_initialization_is_idempotent(self):
        self.db.init_default_reference_data()
        assert len(self.db.get_all_stations()) == len(settings.DEFAULT_STATIONS)

    def test_boundary_station_zones(self):
        station = self.db.get_station("Earl's Court")
        assert station.zones == frozenset({1, 2})
        assert self.db.get_station("earl's court") is None

    def test_fare_table(self):
        assert self.db.get_fare_table() == settings.default_fare_table()
        assert self.db.get_config_value("bus_fare") == "1.80"
        assert self.db.get_config_value("non_existent_key") is None

    def test_add_station(self):
        self.db.add_station("Richmond", [4])
        assert self.db.get_station("Richmond").zones == frozenset({4})

    def test_add_duplicate_station(self):
        with pytest.raises(ValueError):
            self.db.add_station("Holburn", [1])

    def test_add_station_without_zones(self):
        with pytest.raises(ValueError):
            self.db.add_station("Limbo", [])
        assert self.db.get_station("Limbo") is None

    def test_update_fare(self):
        table = self.db.update_fare("bus_fare", "1.75")
        assert table.bus_fare == Decimal("1.75")
        assert self.db.get_fare_table().bus_fare == Decimal("1.75")

    def test_update_fare_above_max_auth_rejected(self):
        with pytest.raises(ValueError):
            self.db.update_fare("zone1_only", "4.00")
        assert self.db.get_fare_table().zone1_only == Decimal("2.50")

    def test_update_unknown_fare_key(self):
        with pytest.raises(ValueError):
            self.db.update_fare("ferry_fare", "1.00")

    def test_empty_database_uses_default_fares(self, tmp_path):
        empty = DatabaseManager(f"sqlite:///{tmp_path / 'empty.db'}")
        try:
            assert empty.get_fare_table() == settings.default_fare_table()
            assert empty.get_all_stations() == []
        finally:
            empty.engine.dispose()


class TestConfiguration:
    """Test configuration settings."""

    def test_reference_data_loaded_from_database(self):
        stations = settings.get_stations()
        assert {s.name for s in stations} >= {"Holburn", "Earl's Court", "Wimbledon"}
        assert settings.get_fare_table().tube_max_auth == Decimal("3.20")

    def test_reference_data_is_cached(self):
        assert settings.get_fare_table() is settings.get_fare_table()
        settings.reload_reference_data()
        assert settings._fare_table_cache is None

    def test_reload_rebuilds_directory_and_resolver(self, monkeypatch):
        from oyster.services.fare_resolver import get_fare_resolver
        from oyster.services.station_directory import get_station_directory

        directory = get_station_directory()
        resolver = get_fare_resolver()
        assert "Richmond" not in directory

        class UpdatedStore:
            def get_all_stations(self):
                return settings.default_stations() + [Station(name="Richmond", zones={4})]

            def get_fare_table(self):
                return FareTable(**{**settings.DEFAULT_FARES, "zone1_only": "2.40"})

        monkeypatch.setattr("oyster.database.get_db_manager", lambda: UpdatedStore())
        settings.reload_reference_data()

        assert get_station_directory() is not directory
        assert "Richmond" in get_station_directory()
        assert get_fare_resolver() is not resolver
        holburn = get_station_directory().get("Holburn")
        assert get_fare_resolver().resolve_tube_fare(holburn, holburn) == Decimal("2.40")

    def test_fallback_to_defaults(self, monkeypatch):
        def unavailable():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        monkeypatch.setattr("oyster.database.get_db_manager", unavailable)
        settings.reload_reference_data()

        assert settings.get_fare_table() == settings.default_fare_table()
        assert settings.get_stations() == settings.default_stations()

    def test_database_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./elsewhere.db")
        assert settings.database_url() == "sqlite:///./elsewhere.db"
        monkeypatch.delenv("DATABASE_URL")
        assert settings.database_url() == settings.DEFAULT_DATABASE_URL
