"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from otp_auth.api.routes import router as auth_router
from otp_auth.config import settings
from otp_auth.database.engine import init_db
from otp_auth.errors import AuthError, BlockedError, InvalidInputError
from otp_auth.services.auth_service import AuthService, build_auth_service

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


async def _sweep_periodically(service: AuthService, interval: float) -> None:
    """Reclaim memory held by expired challenges and lockouts."""
    while True:
        await asyncio.sleep(interval)
        challenges, lockouts = service.purge_expired()
        if challenges or lockouts:
            logger.debug("Purged %d expired OTPs and %d lockouts", challenges, lockouts)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    if settings.user_directory == "database":
        await init_db()

    sweeper = None
    if settings.sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            _sweep_periodically(app.state.auth_service, settings.sweep_interval_seconds)
        )
    yield
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    logger.info("Shutting down %s …", settings.app_name)


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, BlockedError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unparseable bodies the same way as missing fields."""
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    error = InvalidInputError("Request body must be a JSON object with string fields.")
    return JSONResponse(status_code=error.status_code, content=error.payload())


def create_app(service: AuthService | None = None) -> FastAPI:
    """Build the API around *service*, or one wired from settings."""
    app = FastAPI(
        title=settings.app_name,
        description="One-time-password authentication with session tokens",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.auth_service = service or build_auth_service()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(auth_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "OTP Auth Backend is running..."

    @app.get("/health")
    async def health_check():
        """Simple liveness probe."""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn (``otp-auth`` console script)."""
    uvicorn.run("otp_auth.main:app", host="0.0.0.0", port=4000, log_level="info")
