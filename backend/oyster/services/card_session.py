"""Card session: balance and journey state for a single Oyster card."""

from decimal import Decimal
from threading import RLock
from typing import List, Optional, Tuple, Union
import logging

from oyster.config import settings
from oyster.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidTapOutError,
    JourneyAlreadyOpenError,
    UnknownStationError,
)
from oyster.models import (
    FareQuote,
    FareTable,
    JourneyRecord,
    JourneyState,
    OpenJourney,
    Station,
    TransportType,
    to_money,
)
from oyster.services.fare_resolver import FareResolverInterface, ZoneFareResolver
from oyster.services.station_directory import StationDirectory, get_station_directory

logger = logging.getLogger(__name__)


class CardSession:
    """
    A card holding a balance and at most one open tube journey.

    The session is a two-state machine. ``IDLE`` has no open journey;
    ``IN_TUBE_JOURNEY`` holds the origin of a tube tap-in that has not been
    tapped out. A tube tap-in debits the maximum fare up front and the
    tap-out credits back the difference to the real fare. Bus taps are
    settled in full at tap-in and never change state.

    Every debit is all-or-nothing: if the balance cannot cover it the
    operation fails and nothing changes. Operations on one session are
    serialised by a lock, so a session can be shared between threads.

    Station directory, fare table and resolver default to the configured
    ones and can be injected for custom networks.
    """

    def __init__(
        self,
        initial_balance: Union[Decimal, float, int, str] = 0,
        *,
        stations: Optional[StationDirectory] = None,
        fares: Optional[FareTable] = None,
        resolver: Optional[FareResolverInterface] = None,
    ):
        self._balance = self._validate_amount(initial_balance)
        self._stations = stations if stations is not None else get_station_directory()
        self._fares = fares if fares is not None else settings.get_fare_table()
        self._resolver = resolver if resolver is not None else ZoneFareResolver(self._fares)
        self._open_journey: Optional[OpenJourney] = None
        self._history: List[JourneyRecord] = []
        self._lock = RLock()

    @staticmethod
    def _validate_amount(amount) -> Decimal:
        value = to_money(amount)
        if value < 0:
            raise InvalidAmountError(amount)
        return value

    @property
    def fares(self) -> FareTable:
        return self._fares

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def state(self) -> JourneyState:
        if self._open_journey is None:
            return JourneyState.IDLE
        return JourneyState.IN_TUBE_JOURNEY

    @property
    def in_journey(self) -> bool:
        return self._open_journey is not None

    @property
    def open_journey(self) -> Optional[OpenJourney]:
        return self._open_journey

    @property
    def history(self) -> Tuple[JourneyRecord, ...]:
        """Settled journeys, oldest first."""
        return tuple(self._history)

    def get_balance(self) -> Decimal:
        """Current balance in pounds."""
        return self._balance

    def load(self, amount: Union[Decimal, float, int, str]) -> Decimal:
        """
        Add value to the card.

        Args:
            amount: Amount in pounds; zero is accepted

        Returns:
            The new balance

        Raises:
            InvalidAmountError: If the amount is negative or not finite
        """
        value = self._validate_amount(amount)
        with self._lock:
            self._balance += value
            logger.info("Loaded £%s, balance £%s", value, self._balance)
            return self._balance

    def tap_in(self, station_name: str, transport_type: Union[TransportType, str]):
        """
        Tap the card in at a station.

        Args:
            station_name: Exact station name
            transport_type: ``tube`` or ``bus``

        Raises:
            UnknownStationError: If the station does not exist
            JourneyAlreadyOpenError: On a tube tap-in while a tube journey is open
            InsufficientBalanceError: If the balance cannot cover the fare
            ValueError: If the transport type is not recognised
        """
        mode = TransportType(transport_type)
        with self._lock:
            self._lookup(station_name)

            if mode is TransportType.TUBE:
                if self._open_journey is not None:
                    logger.warning(
                        "Rejected tube tap-in at %s: journey from %s still open",
                        station_name, self._open_journey.origin
                    )
                    raise JourneyAlreadyOpenError(self._open_journey.origin)
                self._debit(self._fares.tube_max_auth)
                self._open_journey = OpenJourney(
                    origin=station_name,
                    transport_type=TransportType.TUBE,
                    max_auth_charged=self._fares.tube_max_auth,
                )
                logger.info(
                    "Tube tap-in at %s, held £%s, balance £%s",
                    station_name, self._fares.tube_max_auth, self._balance
                )
            else:
                self._debit(self._fares.bus_fare)
                self._history.append(JourneyRecord(
                    transport_type=TransportType.BUS,
                    origin=station_name,
                    fare=self._fares.bus_fare,
                ))
                logger.info(
                    "Bus tap-in at %s, charged £%s, balance £%s",
                    station_name, self._fares.bus_fare, self._balance
                )

    def tap_out(self, station_name: str) -> FareQuote:
        """
        Tap the card out at the end of a tube journey.

        The fare is the cheapest one consistent with the zones of both
        stations; the rest of the amount held at tap-in is credited back.

        Returns:
            FareQuote for the completed journey

        Raises:
            InvalidTapOutError: If no tube journey is open
            UnknownStationError: If the station does not exist (journey stays open)
        """
        with self._lock:
            journey = self._open_journey
            if journey is None:
                logger.warning("Rejected tap-out at %s: no open journey", station_name)
                raise InvalidTapOutError()

            destination = self._lookup(station_name)
            origin = self._stations.lookup(journey.origin)
            if origin is None:
                raise RuntimeError(
                    f"Origin station {journey.origin} of the open journey is no longer in the directory"
                )

            quote = self._resolver.resolve(origin, destination)
            self._balance += journey.max_auth_charged - quote.fare
            self._open_journey = None
            self._history.append(JourneyRecord(
                transport_type=TransportType.TUBE,
                origin=journey.origin,
                destination=station_name,
                fare=quote.fare,
            ))
            logger.info(
                "Tube tap-out at %s, fare £%s, balance £%s",
                station_name, quote.fare, self._balance
            )
            return quote

    def _lookup(self, station_name: str) -> Station:
        station = self._stations.lookup(station_name)
        if station is None:
            logger.warning("Unknown station %r", station_name)
            raise UnknownStationError(station_name)
        return station

    def _debit(self, amount: Decimal):
        if self._balance < amount:
            logger.warning("Insufficient balance £%s for £%s", self._balance, amount)
            raise InsufficientBalanceError(self._balance, amount)
        self._balance -= amount

    def __repr__(self):
        return f"<CardSession(balance={self._balance}, state={self.state.value})>"
