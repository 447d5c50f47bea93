"""Services package for the Oyster card system."""

from .fare_resolver import (
    get_fare_resolver,
    FareResolverInterface,
    ZoneFareResolver
)
from .station_directory import (
    get_station_directory,
    InMemoryStationDirectory,
    StationDirectory
)
from .card_session import CardSession
from .card_registry import get_card_registry, CardRegistry

__all__ = [
    'get_fare_resolver',
    'FareResolverInterface',
    'ZoneFareResolver',
    'get_station_directory',
    'InMemoryStationDirectory',
    'StationDirectory',
    'CardSession',
    'get_card_registry',
    'CardRegistry'
]
