"""
FastAPI application for phone verification.

Run with: uvicorn phoneverify.main:app
"""
import logging
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from . import __version__  # noqa: E402
from .core.config import settings, validate_config  # noqa: E402
from .db import init_db  # noqa: E402
from .exception_handlers import register_exception_handlers  # noqa: E402
from .middleware import LoggingMiddleware  # noqa: E402
from .routers import health, users, phone_verification  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and ensure the schema before serving."""
    logger.info(f"[STARTUP] Starting phoneverify {__version__} (ENV={settings.ENV})")
    validate_config()
    init_db()
    logger.info("[STARTUP] Ready")
    yield
    logger.info("[SHUTDOWN] Stopping phoneverify")


def create_app() -> FastAPI:
    app = FastAPI(title="Phone Verification", version=__version__, lifespan=lifespan)

    app.add_middleware(LoggingMiddleware)
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(phone_verification.router)
    return app


app = create_app()
