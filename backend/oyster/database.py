"""Database models and setup for Oyster card reference data."""

from decimal import Decimal
from typing import Iterable, List, Optional
import logging

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint, create_engine
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from oyster.config import settings
from oyster.models import FareTable, Station, to_money

logger = logging.getLogger(__name__)

Base = declarative_base()


class StationDB(Base):
    """Database model for storing stations."""
    __tablename__ = "stations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    zones = relationship(
        "StationZoneDB",
        back_populates="station",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_station(self) -> Station:
        return Station(name=self.name, zones=frozenset(z.zone for z in self.zones))

    def __repr__(self):
        return f"<Station(name={self.name})>"


class StationZoneDB(Base):
    """Database model for the zones a station belongs to."""
    __tablename__ = "station_zones"

    id = Column(Integer, primary_key=True, index=True)
    station_id = Column(Integer, ForeignKey("stations.id"), nullable=False)
    zone = Column(Integer, nullable=False)

    station = relationship("StationDB", back_populates="zones")

    # A station lists each zone once
    __table_args__ = (
        UniqueConstraint('station_id', 'zone', name='_station_zone_uc'),
    )

    def __repr__(self):
        return f"<StationZone(station_id={self.station_id}, zone={self.zone})>"


class FareConfigDB(Base):
    """Database model for storing fare table entries."""
    __tablename__ = "fare_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False)
    value = Column(String, nullable=False)
    description = Column(String, nullable=True)

    def __repr__(self):
        return f"<FareConfig(key={self.key}, value={self.value})>"


FARE_DESCRIPTIONS = {
    "bus_fare": "Flat fare for any bus journey",
    "tube_max_auth": "Maximum fare held at tube tap-in",
    "zone1_only": "Tube journey within zone 1",
    "one_zone_outside_zone1": "Tube journey within one zone outside zone 1",
    "two_zones_including_zone1": "Tube journey across two zones including zone 1",
    "two_zones_excluding_zone1": "Tube journey across two zones excluding zone 1",
    "three_zones": "Tube journey across three or more zones",
}


class DatabaseManager:
    """Manager class for reference data stored in the database."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection."""
        self.database_url = database_url or settings.database_url()

        # Create engine with appropriate settings for SQLite
        connect_args = {"check_same_thread": False} if "sqlite" in self.database_url else {}
        self.engine = create_engine(self.database_url, connect_args=connect_args)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def init_default_reference_data(self):
        """Seed the database with the reference stations and fares."""
        session = self.get_session()
        try:
            if session.query(StationDB).count() == 0:
                for station in settings.default_stations():
                    session.add(self._station_row(station.name, station.zones))
                session.commit()
                logger.info("Initialized %d default stations", len(settings.DEFAULT_STATIONS))

            if session.query(FareConfigDB).count() == 0:
                for key, value in settings.DEFAULT_FARES.items():
                    session.add(FareConfigDB(
                        key=key,
                        value=value,
                        description=FARE_DESCRIPTIONS.get(key)
                    ))
                session.commit()
                logger.info("Initialized default fare table")
        finally:
            session.close()

    @staticmethod
    def _station_row(name: str, zones: Iterable[int]) -> StationDB:
        row = StationDB(name=name)
        row.zones = [StationZoneDB(zone=zone) for zone in sorted(set(zones))]
        return row

    def get_all_stations(self) -> List[Station]:
        """Retrieve all stations from the database, ordered by name."""
        session = self.get_session()
        try:
            rows = session.query(StationDB).order_by(StationDB.name).all()
            return [row.to_station() for row in rows]
        finally:
            session.close()

    def get_station(self, name: str) -> Optional[Station]:
        """Get a single station by exact name."""
        session = self.get_session()
        try:
            row = session.query(StationDB).filter_by(name=name).first()
            return row.to_station() if row else None
        finally:
            session.close()

    def add_station(self, name: str, zones: Iterable[int]) -> Station:
        """
        Add a new station.

        Args:
            name: Station name, must not already exist
            zones: Zones the station belongs to (at least one)

        Raises:
            ValueError: If the station exists or the zones are invalid
        """
        station = Station(name=name, zones=frozenset(zones))
        session = self.get_session()
        try:
            if session.query(StationDB).filter_by(name=name).first():
                raise ValueError(f"Station {name} already exists")
            session.add(self._station_row(station.name, station.zones))
            session.commit()
            logger.info("Added station %s in zones %s", name, sorted(station.zones))
            return station
        finally:
            session.close()

    def get_fare_table(self) -> FareTable:
        """Build the fare table from stored values."""
        session = self.get_session()
        try:
            values = {row.key: row.value for row in session.query(FareConfigDB).all()}
        finally:
            session.close()
        if not values:
            return settings.default_fare_table()
        return FareTable(**{**settings.DEFAULT_FARES, **values})

    def update_fare(self, key: str, value) -> FareTable:
        """
        Update a single fare table entry.

        The resulting table is validated before anything is written, so a
        tier can never be raised above the tube pre-authorisation.

        Raises:
            ValueError: If the key is unknown or the resulting table is invalid
        """
        if key not in FARE_DESCRIPTIONS:
            raise ValueError(f"Unknown fare key: {key}")
        amount: Decimal = to_money(value)
        current = self.get_fare_table().model_dump()
        current[key] = amount
        table = FareTable(**current)

        session = self.get_session()
        try:
            row = session.query(FareConfigDB).filter_by(key=key).first()
            if row:
                row.value = str(amount)
            else:
                session.add(FareConfigDB(
                    key=key,
                    value=str(amount),
                    description=FARE_DESCRIPTIONS[key]
                ))
            session.commit()
            logger.info("Updated fare %s to %s", key, amount)
            return table
        finally:
            session.close()

    def get_config_value(self, key: str) -> Optional[str]:
        """Get a stored fare table value by key."""
        session = self.get_session()
        try:
            row = session.query(FareConfigDB).filter_by(key=key).first()
            return row.value if row else None
        finally:
            session.close()


# Singleton instance
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get singleton database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
        _db_manager.init_default_reference_data()
    return _db_manager


def reset_db_manager():
    """Forget the singleton so the next call reconnects using the current settings."""
    global _db_manager
    if _db_manager is not None:
        _db_manager.engine.dispose()
    _db_manager = None
