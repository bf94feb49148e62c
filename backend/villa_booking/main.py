"""
Villa Booking API - Main Application Entry Point

Short-term villa rentals with:
- Per-villa serialized calendar reservations (no double-booking)
- Time-limited holds with payment authorization, confirmed by capture
- Background expiry of unconfirmed holds
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from villa_booking.api.middleware import RequestLoggingMiddleware, request_id_for
from villa_booking.api.router import api_router
from villa_booking.core.config import get_settings
from villa_booking.core.exceptions import BookingError
from villa_booking.core.logging import get_logger, setup_logging
from villa_booking.core.metrics import metrics_endpoint
from villa_booking.db.session import AsyncSessionLocal, engine
from villa_booking.infrastructure.redis_client import close_redis
from villa_booking.services.container import build_container

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging(settings)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        lock_strategy=settings.LOCK_STRATEGY,
    )

    if getattr(app.state, "container", None) is None:
        app.state.container = await build_container(settings, AsyncSessionLocal)
    container = app.state.container

    if settings.SWEEPER_ENABLED:
        container.sweeper.start()

    yield

    # Cleanup
    await container.sweeper.stop()
    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Villa booking API with concurrency-safe calendar holds",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)


def error_response(request: Request, status_code: int, error: dict) -> JSONResponse:
    request_id = request_id_for(request)
    headers = {"X-Request-ID": request_id} if request_id else None
    return JSONResponse(
        status_code=status_code,
        content={"error": {**error, "request_id": request_id}},
        headers=headers,
    )


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("booking_error", code=exc.code, error=exc.message, **exc.context)
    else:
        logger.info("booking_rejected", code=exc.code, error=exc.message)
    return error_response(request, exc.status_code, exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error_type=type(exc).__name__)
    return error_response(request, 500, {"code": "internal_error", "message": "Internal server error"})


# Routes
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    container = getattr(app.state, "container", None)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "lock_strategy": settings.LOCK_STRATEGY,
        "sweeper_running": bool(container and container.sweeper.running),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
