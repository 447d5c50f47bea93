"""API endpoints for Oyster cards and fares."""

from fastapi import APIRouter, Depends, Response

from oyster.config import settings
from oyster.database import get_db_manager
from oyster.models import (
    CardCreateRequest,
    CardResponse,
    FareQuote,
    FareQuoteRequest,
    FareTable,
    LoadRequest,
    TapInRequest,
    TapOutRequest,
    TapOutResponse,
)
from oyster.services import get_card_registry, get_fare_resolver, get_station_directory
from oyster.services.card_registry import CardRegistry
from oyster.services.card_session import CardSession
from oyster.services.fare_resolver import FareResolverInterface
from oyster.services.station_directory import InMemoryStationDirectory

router = APIRouter(prefix="/api", tags=["Oyster Cards"])


def get_registry() -> CardRegistry:
    """Dependency injection for the card registry."""
    return get_card_registry()


def get_resolver() -> FareResolverInterface:
    """
    Dependency injection for the fare resolver.
    Returns any implementation of FareResolverInterface.
    """
    return get_fare_resolver()


def get_directory() -> InMemoryStationDirectory:
    """Dependency injection for the station directory."""
    return get_station_directory()


def card_response(card_id: str, card: CardSession) -> CardResponse:
    return CardResponse(
        card_id=card_id,
        balance=card.get_balance(),
        state=card.state,
        open_journey=card.open_journey,
    )


@router.post("/cards", response_model=CardResponse, status_code=201)
async def create_card(
    request: CardCreateRequest,
    registry: CardRegistry = Depends(get_registry)
) -> CardResponse:
    """Issue a new card with an initial balance."""
    card_id, card = registry.create(request.initial_balance)
    return card_response(card_id, card)


@router.get("/cards/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: str,
    registry: CardRegistry = Depends(get_registry)
) -> CardResponse:
    """Get the balance and journey state of a card."""
    return card_response(card_id, registry.get(card_id))


@router.delete("/cards/{card_id}", status_code=204, response_class=Response)
async def delete_card(
    card_id: str,
    registry: CardRegistry = Depends(get_registry)
) -> Response:
    """Retire a card and release its session."""
    registry.remove(card_id)
    return Response(status_code=204)


@router.post("/cards/{card_id}/load", response_model=CardResponse)
async def load_card(
    card_id: str,
    request: LoadRequest,
    registry: CardRegistry = Depends(get_registry)
) -> CardResponse:
    """Top up a card."""
    card = registry.get(card_id)
    card.load(request.amount)
    return card_response(card_id, card)


@router.post("/cards/{card_id}/tap-in", response_model=CardResponse)
async def tap_in(
    card_id: str,
    request: TapInRequest,
    registry: CardRegistry = Depends(get_registry)
) -> CardResponse:
    """
    Tap a card in at a station.

    Raises (mapped by the application error handler):
        UnknownStationError: 404
        InsufficientBalanceError: 402
        JourneyAlreadyOpenError: 409
    """
    card = registry.get(card_id)
    card.tap_in(request.station, request.transport_type)
    return card_response(card_id, card)


@router.post("/cards/{card_id}/tap-out", response_model=TapOutResponse)
async def tap_out(
    card_id: str,
    request: TapOutRequest,
    registry: CardRegistry = Depends(get_registry)
) -> TapOutResponse:
    """Tap a card out at the end of a tube journey and settle the fare."""
    card = registry.get(card_id)
    quote = card.tap_out(request.station)
    return TapOutResponse(
        **card_response(card_id, card).model_dump(),
        fare=quote,
    )


@router.get("/stations")
async def list_stations(directory: InMemoryStationDirectory = Depends(get_directory)):
    """List all stations and their zones."""
    stations = [
        {"name": station.name, "zones": sorted(station.zones)}
        for station in sorted(directory, key=lambda s: s.name)
    ]
    return {"stations": stations, "total_stations": len(stations)}


@router.get("/fares", response_model=FareTable)
async def get_fares() -> FareTable:
    """Get the configured fare table."""
    return settings.get_fare_table()


@router.post("/fares/quote", response_model=FareQuote)
async def quote_fare(
    request: FareQuoteRequest,
    resolver: FareResolverInterface = Depends(get_resolver),
    directory: InMemoryStationDirectory = Depends(get_directory)
) -> FareQuote:
    """Quote the cheapest tube fare between two stations without touching any card."""
    origin = directory.get(request.origin)
    destination = directory.get(request.destination)
    return resolver.resolve(origin, destination)


@router.get("/health")
async def health_check():
    """Health check endpoint including datastore status."""
    db_status = "healthy"
    try:
        stations_count = len(get_db_manager().get_all_stations())
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        stations_count = 0

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "datastore_status": db_status,
        "stations_count": stations_count,
        "active_cards": len(get_card_registry()),
    }
