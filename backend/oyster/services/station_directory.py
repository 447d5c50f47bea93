"""Station lookup by name."""

from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Protocol
import logging

from oyster.config import settings
from oyster.exceptions import UnknownStationError
from oyster.models import Station

logger = logging.getLogger(__name__)


class StationDirectory(Protocol):
    """Port for looking up stations by exact name."""

    def lookup(self, name: str) -> Optional[Station]:
        """Find a station by name, or None if it does not exist."""
        ...


class InMemoryStationDirectory:
    """Read-only station directory, fixed at construction and safe to share."""

    def __init__(self, stations: Iterable[Station]):
        by_name = {}
        for station in stations:
            if station.name in by_name:
                raise ValueError(f"Duplicate station name: {station.name}")
            by_name[station.name] = station
        self._stations = MappingProxyType(by_name)

    def lookup(self, name: str) -> Optional[Station]:
        return self._stations.get(name)

    def get(self, name: str) -> Station:
        """
        Get a station by name.

        Raises:
            UnknownStationError: If no station has this exact name
        """
        station = self.lookup(name)
        if station is None:
            raise UnknownStationError(name)
        return station

    def names(self) -> List[str]:
        return sorted(self._stations)

    def __contains__(self, name) -> bool:
        return name in self._stations

    def __iter__(self) -> Iterator[Station]:
        return iter(self._stations.values())

    def __len__(self) -> int:
        return len(self._stations)


_default_directory: Optional[InMemoryStationDirectory] = None


def get_station_directory() -> InMemoryStationDirectory:
    """Get the default station directory built from the configured stations."""
    global _default_directory
    if _default_directory is None:
        _default_directory = InMemoryStationDirectory(settings.get_stations())
        logger.debug("Loaded %d stations", len(_default_directory))
    return _default_directory


def reset_station_directory():
    """Drop the default directory so it is rebuilt from current settings."""
    global _default_directory
    _default_directory = None
