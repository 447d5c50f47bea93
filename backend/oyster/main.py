"""FastAPI application for the Oyster card system."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oyster.api.endpoints import router
from oyster.config import configure_logging, settings
from oyster.exceptions import (
    CardError,
    CardNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidTapOutError,
    JourneyAlreadyOpenError,
    UnknownStationError,
)

configure_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    UnknownStationError: 404,
    CardNotFoundError: 404,
    InsufficientBalanceError: 402,
    InvalidTapOutError: 409,
    JourneyAlreadyOpenError: 409,
    InvalidAmountError: 400,
}

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(CardError)
async def card_error_handler(request: Request, exc: CardError) -> JSONResponse:
    """Map card errors to HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
