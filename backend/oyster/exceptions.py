"""Errors raised by the Oyster card core."""

from decimal import Decimal
from typing import Any


class CardError(Exception):
    """Base class for every error a card operation can raise."""


class UnknownStationError(CardError, LookupError):
    """Station name has no entry in the station directory."""

    def __init__(self, station_name: str):
        self.station_name = station_name
        super().__init__(f"Station {station_name} not found.")


class InsufficientBalanceError(CardError):
    """A debit would bring the balance below zero."""

    def __init__(self, balance: Decimal, required: Decimal):
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient balance: £{balance:.2f} available, £{required:.2f} required."
        )


class InvalidTapOutError(CardError):
    """Tap-out attempted while not in an open tube journey."""

    def __init__(self):
        super().__init__("Invalid tap out: not currently in an open tube journey.")


class JourneyAlreadyOpenError(CardError):
    """Tube tap-in attempted while a tube journey is already open."""

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__(
            f"A tube journey from {origin} is already open. Tap out before tapping in again."
        )


class InvalidAmountError(CardError, ValueError):
    """Amount is negative or not a finite number."""

    def __init__(self, amount: Any):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount!r}. Must be a finite, non-negative value.")


class CardNotFoundError(CardError, LookupError):
    """No live card session is registered under the given id."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card {card_id} not found.")
