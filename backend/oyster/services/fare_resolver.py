"""Tube fare resolution between stations that may span several zones."""

from abc import ABC, abstractmethod
from decimal import Decimal
from itertools import product
from typing import Optional, Protocol, runtime_checkable
import logging

from oyster.config import settings
from oyster.models import FareQuote, FareTable, Station

logger = logging.getLogger(__name__)


@runtime_checkable
class FareResolverInterface(Protocol):
    """
    Interface for tube fare resolution (Dependency Inversion Principle).
    Card sessions depend on this contract, not on a concrete resolver.
    """

    def resolve(self, origin: Station, destination: Station) -> FareQuote:
        """Resolve the cheapest fare and the zones it was charged for."""
        ...

    def resolve_tube_fare(self, origin: Station, destination: Station) -> Decimal:
        """Resolve the cheapest fare between two stations."""
        ...


class BaseFareResolver(ABC):
    """Abstract base class for fare resolvers (Open/Closed Principle)."""

    @abstractmethod
    def fare_for_zones(self, from_zone: int, to_zone: int) -> Decimal:
        """
        Fare for a journey between two definite zones.
        Must be implemented by subclasses.
        """
        pass

    def resolve(self, origin: Station, destination: Station) -> FareQuote:
        """
        Resolve the cheapest fare between two stations.

        A boundary station may be counted as any of its zones, so every
        (origin zone, destination zone) interpretation is priced and the
        lowest fare wins. Zones are visited in ascending order and the first
        minimum is kept, which makes the reported zone pair deterministic.

        Args:
            origin: Station where the journey started
            destination: Station where the journey ended

        Returns:
            FareQuote with the fare and the zone pair it was charged for
        """
        best: Optional[FareQuote] = None
        for from_zone, to_zone in product(sorted(origin.zones), sorted(destination.zones)):
            fare = self.fare_for_zones(from_zone, to_zone)
            if best is None or fare < best.fare:
                best = FareQuote(
                    origin=origin.name,
                    destination=destination.name,
                    origin_zone=from_zone,
                    destination_zone=to_zone,
                    fare=fare,
                )

        if best is None:
            raise ValueError("Both stations must belong to at least one zone")

        logger.debug(
            "Resolved %s -> %s as zone %d -> zone %d: £%s",
            origin.name, destination.name, best.origin_zone, best.destination_zone, best.fare
        )
        return best

    def resolve_tube_fare(self, origin: Station, destination: Station) -> Decimal:
        return self.resolve(origin, destination).fare


class ZoneFareResolver(BaseFareResolver):
    """
    Concrete resolver pricing journeys by zone span and zone 1 involvement.
    Pure function of its inputs and the fare table it was built with.
    """

    def __init__(self, fares: FareTable):
        self.fares = fares

    def fare_for_zones(self, from_zone: int, to_zone: int) -> Decimal:
        span = abs(from_zone - to_zone) + 1
        involves_zone1 = 1 in (from_zone, to_zone)
        return self.fares.tier_fare(span, involves_zone1)


# Singleton instance for default resolver
_default_resolver: Optional[FareResolverInterface] = None


def get_fare_resolver() -> FareResolverInterface:
    """
    Get the default fare resolver instance (Singleton pattern).

    Returns:
        Fare resolver built from the configured fare table
    """
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = ZoneFareResolver(settings.get_fare_table())
    return _default_resolver


def reset_fare_resolver():
    """Drop the default resolver so it is rebuilt from current settings."""
    global _default_resolver
    _default_resolver = None
