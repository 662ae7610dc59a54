"""
geoblock - country blocking API.
Main FastAPI application entry point.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from geoblock.config import Settings, get_settings
from geoblock.api.router import api_router
from geoblock.services.attempt_log import AttemptLogStore
from geoblock.services.blocked_countries import BlockedCountryRegistry, Clock, utc_now
from geoblock.services.blocking import BlockingService
from geoblock.services.countries import CountryClient
from geoblock.services.errors import BlockingError
from geoblock.services.geolocation import GeoLocationClient
from geoblock.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
    set_request_path,
)
from geoblock.workers.expiry_sweeper import ExpirySweeper

logger = logging.getLogger("geoblock")

SHUTDOWN_TIMEOUT_SECONDS = 10.0


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Injects a correlation ID into every request context and response header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(cid)
        set_request_path(request.url.path)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expiry sweeper; stop it and close outbound clients on shutdown."""
    settings = app.state.settings
    logger.info("geoblock starting up (env=%s)", settings.app_env)

    if not settings.ipgeolocation_api_key:
        logger.warning(
            "IPGEOLOCATION_API_KEY not set - IP lookups and block checks will fail "
            "until it is configured."
        )

    # Initialize Sentry if configured
    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.app_env,
            )
            logger.info("Sentry initialized")
        except Exception as e:
            logger.warning("Sentry initialization failed: %s", str(e))

    stop_event = asyncio.Event()
    sweeper_task = asyncio.create_task(app.state.expiry_sweeper.run(stop_event))
    logger.info("Expiry sweeper worker started")

    yield

    logger.info("geoblock shutting down - stopping expiry sweeper...")
    stop_event.set()
    done, pending = await asyncio.wait([sweeper_task], timeout=SHUTDOWN_TIMEOUT_SECONDS)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    service: BlockingService = app.state.blocking_service
    await service.geolocation.aclose()
    await service.countries.aclose()
    logger.info("geoblock shutdown complete")


async def blocking_error_handler(request: Request, exc: BlockingError) -> JSONResponse:
    """Expected failures: validation, conflicts, missing blocks, upstream errors."""
    logger.warning(
        "%s %s failed: %s", request.method, request.url.path, exc.message,
        extra={"error_code": exc.error_code.value},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.error_code.value},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s: %s", request.method, request.url.path, str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred"},
    )


def _cors_origins(settings: Settings) -> list[str]:
    origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    return origins or ["*"]


def create_app(
    settings: Optional[Settings] = None,
    clock: Clock = utc_now,
    geolocation: Optional[GeoLocationClient] = None,
    countries: Optional[CountryClient] = None,
) -> FastAPI:
    """
    Application factory.

    The registry, attempt log, outbound clients and sweeper are created here
    once and stored on app.state; routes reach them through Depends providers.
    """
    settings = settings or get_settings()

    # Configure structured JSON logging with correlation IDs
    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="geoblock",
        description="Country blocking and IP block-check API",
        version="1.0.0",
        lifespan=lifespan,
    )

    registry = BlockedCountryRegistry(clock=clock)
    geolocation = geolocation or GeoLocationClient(
        api_key=settings.ipgeolocation_api_key,
        base_url=settings.ipgeolocation_base_url,
        timeout=settings.http_timeout_seconds,
    )
    countries = countries or CountryClient(
        base_url=settings.restcountries_base_url,
        timeout=settings.http_timeout_seconds,
    )

    application.state.settings = settings
    application.state.blocking_service = BlockingService(
        registry=registry,
        attempts=AttemptLogStore(),
        geolocation=geolocation,
        countries=countries,
        clock=clock,
        enrich_country_names=settings.enrich_country_names,
        max_duration_minutes=settings.max_block_duration_minutes,
        max_page_size=settings.max_page_size,
    )
    application.state.expiry_sweeper = ExpirySweeper(
        registry,
        interval_seconds=settings.sweep_interval_seconds,
        clock=clock,
    )

    origins = _cors_origins(settings)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type", "X-Correlation-ID", "X-Forwarded-For",
            "Accept", "Origin", "X-Requested-With",
        ],
    )

    # Correlation ID middleware (must be added AFTER CORS so it runs on every request)
    application.add_middleware(CorrelationIdMiddleware)

    application.add_exception_handler(BlockingError, blocking_error_handler)
    application.add_exception_handler(Exception, unexpected_error_handler)

    application.include_router(api_router)

    return application


app = create_app()
