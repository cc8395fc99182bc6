"""
Showtime Booking API - Main Application Entry Point

A movie/event seat booking service demonstrating:
- Seat admission serialized per showing, backed by a seat-level unique constraint
- Atomic cancellation that releases seats
- Structured logging with request correlation
- Bounded storage calls with distinct timeout failures
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from booking_api.core.config import get_settings
from booking_api.core.exceptions import BookingError, StorageError
from booking_api.core.logging import setup_logging, get_logger
from booking_api.core.metrics import metrics_endpoint
from booking_api.api.router import api_router
from booking_api.api.middleware import RequestLoggingMiddleware
from booking_api.db.session import Database
from booking_api.infrastructure.redis_client import get_redis, close_redis
from booking_api.services.strategy_factory import get_showing_guard

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: open storage on startup, release it on shutdown."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        admission_strategy=settings.ADMISSION_STRATEGY,
    )

    database = Database.from_settings(settings)
    if settings.DB_CREATE_TABLES:
        await database.create_all()
    app.state.database = database

    if settings.ADMISSION_STRATEGY == "redis":
        if await get_redis():
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Showing locks fall back to in-process locks")

    yield

    await database.dispose()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Movie and event seat booking API with conflict-free seat admission",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    # Full context was logged where the error was raised; clients get an opaque message
    logger.error("storage_failure_response", operation=exc.operation, error=str(exc))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    logger.info("request_invalid", errors=errors)
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": errors})


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint for Docker and load balancers."""
    database: Database = request.app.state.database
    database_ok = await database.ping()
    return {
        "status": "healthy" if database_ok else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "connected" if database_ok else "unreachable",
        "admission_strategy": get_showing_guard().strategy,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("booking_api.main:app", host=settings.HOST, port=settings.PORT)
