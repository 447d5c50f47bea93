"""Models for the Oyster card fare system."""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from oyster.exceptions import InvalidAmountError

PENNY = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000.00")


def to_money(value: Any) -> Decimal:
    """
    Convert a numeric value to a Decimal amount in pounds and pence.

    Floats go through ``str`` so that ``1.8`` becomes ``Decimal("1.80")``
    rather than its binary approximation. Amounts are never rounded: a
    value with fractions of a penny is rejected.

    Raises:
        InvalidAmountError: If the value is not a finite number, has more
            than two decimal places, or exceeds MAX_AMOUNT in magnitude
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        money = amount.quantize(PENNY) if amount.is_finite() else None
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(value) from None
    if money is None or money != amount or abs(money) > MAX_AMOUNT:
        raise InvalidAmountError(value)
    return money


class TransportType(str, Enum):
    """Mode of transport a tap belongs to."""
    TUBE = "tube"
    BUS = "bus"


class JourneyState(str, Enum):
    """State of a card session."""
    IDLE = "idle"
    IN_TUBE_JOURNEY = "in_tube_journey"


class Station(BaseModel):
    """A station and the fare zones it belongs to."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Station name (case-sensitive)")
    zones: FrozenSet[int] = Field(..., min_length=1, description="Zones the station belongs to")

    @field_validator('zones')
    @classmethod
    def validate_zones(cls, v):
        if any(zone < 1 for zone in v):
            raise ValueError(f"Zone numbers must be 1 or greater, got {sorted(v)}")
        return v


class FareTable(BaseModel):
    """
    Immutable fare configuration.

    Tube tiers are keyed by journey span (number of zones crossed) and
    whether zone 1 is involved. Every tier must fit inside the tube
    pre-authorisation so the refund at tap-out is never negative.
    """
    model_config = ConfigDict(frozen=True)

    bus_fare: Decimal = Field(..., ge=0, description="Flat fare for any bus journey")
    tube_max_auth: Decimal = Field(..., ge=0, description="Amount held at tube tap-in")
    zone1_only: Decimal = Field(..., ge=0)
    one_zone_outside_zone1: Decimal = Field(..., ge=0)
    two_zones_including_zone1: Decimal = Field(..., ge=0)
    two_zones_excluding_zone1: Decimal = Field(..., ge=0)
    three_zones: Decimal = Field(..., ge=0)

    @field_validator('*', mode='before')
    @classmethod
    def convert_to_money(cls, v):
        return to_money(v)

    @model_validator(mode='after')
    def validate_tiers_within_max_auth(self):
        for name in self.tube_tier_names():
            if getattr(self, name) > self.tube_max_auth:
                raise ValueError(
                    f"Tube fare {name}={getattr(self, name)} exceeds "
                    f"tube_max_auth={self.tube_max_auth}"
                )
        return self

    @staticmethod
    def tube_tier_names():
        return (
            'zone1_only',
            'one_zone_outside_zone1',
            'two_zones_including_zone1',
            'two_zones_excluding_zone1',
            'three_zones',
        )

    def tier_fare(self, span: int, involves_zone1: bool) -> Decimal:
        """Look up the tube fare tier for a zone span."""
        if span < 1:
            raise ValueError(f"Span must be at least 1, got {span}")
        if span == 1:
            return self.zone1_only if involves_zone1 else self.one_zone_outside_zone1
        if span == 2:
            return self.two_zones_including_zone1 if involves_zone1 else self.two_zones_excluding_zone1
        return self.three_zones


class OpenJourney(BaseModel):
    """A tube journey that has been tapped in but not yet tapped out."""
    model_config = ConfigDict(frozen=True)

    origin: str
    transport_type: TransportType = TransportType.TUBE
    max_auth_charged: Decimal


class JourneyRecord(BaseModel):
    """A settled journey in a card's history."""
    model_config = ConfigDict(frozen=True)

    transport_type: TransportType
    origin: str
    destination: Optional[str] = Field(None, description="Tap-out station; None for bus journeys")
    fare: Decimal


class FareQuote(BaseModel):
    """Cheapest tube fare between two stations and the zones that produced it."""
    model_config = ConfigDict(frozen=True)

    origin: str
    destination: str
    origin_zone: int
    destination_zone: int
    fare: Decimal


# API request / response models

class CardCreateRequest(BaseModel):
    """Request model for issuing a new card."""
    initial_balance: Decimal = Field(
        Decimal("0"), ge=0, le=MAX_AMOUNT, decimal_places=2, description="Starting balance in pounds"
    )


class LoadRequest(BaseModel):
    """Request model for topping up a card."""
    amount: Decimal = Field(
        ..., ge=0, le=MAX_AMOUNT, decimal_places=2, description="Amount to add in pounds"
    )


class TapInRequest(BaseModel):
    """Request model for a tap-in."""
    station: str = Field(..., min_length=1)
    transport_type: TransportType


class TapOutRequest(BaseModel):
    """Request model for a tube tap-out."""
    station: str = Field(..., min_length=1)


class FareQuoteRequest(BaseModel):
    """Request model for a fare quote between two stations."""
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)


class CardResponse(BaseModel):
    """Response model describing a card."""
    card_id: str
    balance: Decimal
    state: JourneyState
    open_journey: Optional[OpenJourney] = None


class TapOutResponse(CardResponse):
    """Card response extended with the fare charged for the journey."""
    fare: FareQuote
