"""Configuration for the Oyster card system."""

from typing import Dict, List, Optional, Tuple
import logging
import os

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from oyster.models import FareTable, Station

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings:
    """Application settings."""

    # API Settings
    API_TITLE = "Oyster Card Fare System"
    API_VERSION = "1.0.0"
    API_DESCRIPTION = (
        "Contactless transit card with tap-in/tap-out journeys and zone-based tube fares"
    )

    # Database Settings
    DEFAULT_DATABASE_URL = "sqlite:///./oyster_reference_data.db"

    # CORS Settings
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Reference fares in pounds, used to seed the datastore
    DEFAULT_FARES: Dict[str, str] = {
        "bus_fare": "1.80",
        "tube_max_auth": "3.20",
        "zone1_only": "2.50",
        "one_zone_outside_zone1": "2.00",
        "two_zones_including_zone1": "3.00",
        "two_zones_excluding_zone1": "2.25",
        "three_zones": "3.20",
    }

    DEFAULT_STATIONS: List[Tuple[str, Tuple[int, ...]]] = [
        ("Holburn", (1,)),
        ("Chelsea", (1,)),
        ("Earl's Court", (1, 2)),
        ("Wimbledon", (3,)),
        ("Hammersmith", (2,)),
        ("Southfields", (3,)),
        ("Any Station", (1,)),
        ("Another Station", (1,)),
        ("Final Station", (1,)),
    ]

    # Cached reference data (loaded from database)
    _fare_table_cache: Optional[FareTable] = None
    _stations_cache: Optional[List[Station]] = None

    @classmethod
    def database_url(cls) -> str:
        """Database URL, read at call time so it can be overridden per process."""
        return os.getenv("DATABASE_URL", cls.DEFAULT_DATABASE_URL)

    @classmethod
    def default_fare_table(cls) -> FareTable:
        return FareTable(**cls.DEFAULT_FARES)

    @classmethod
    def default_stations(cls) -> List[Station]:
        return [Station(name=name, zones=zones) for name, zones in cls.DEFAULT_STATIONS]

    @classmethod
    def get_fare_table(cls) -> FareTable:
        """
        Get the fare table from the database (with caching).
        Falls back to the reference fares if the database is unavailable.
        """
        if cls._fare_table_cache is None:
            try:
                from oyster.database import get_db_manager

                cls._fare_table_cache = get_db_manager().get_fare_table()
            except SQLAlchemyError as e:
                logger.warning("Could not load fare table from database: %s", e)
                cls._fare_table_cache = cls.default_fare_table()
        return cls._fare_table_cache

    @classmethod
    def get_stations(cls) -> List[Station]:
        """
        Get all stations from the database (with caching).
        Falls back to the reference stations if the database is unavailable.
        """
        if cls._stations_cache is None:
            try:
                from oyster.database import get_db_manager

                cls._stations_cache = get_db_manager().get_all_stations()
            except SQLAlchemyError as e:
                logger.warning("Could not load stations from database: %s", e)
                cls._stations_cache = cls.default_stations()
        return cls._stations_cache

    @classmethod
    def reload_reference_data(cls):
        """
        Drop cached stations and fares so the next access reloads them.
        The default station directory and fare resolver are rebuilt too.
        """
        from oyster.services.fare_resolver import reset_fare_resolver
        from oyster.services.station_directory import reset_station_directory

        cls._fare_table_cache = None
        cls._stations_cache = None
        reset_fare_resolver()
        reset_station_directory()


def configure_logging(level: Optional[str] = None):
    """Configure root logging for the service and the command line tool."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )


settings = Settings()
