"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import __version__
from .api import analysis_router, documents_router, folders_router, events_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .database import get_db, init_db, DATABASE_URL
from .exceptions import MailboxException
from .middleware.exception_handler import mailbox_exception_handler
from .middleware.request_context import RequestContextMiddleware

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the Smart Mailbox API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and not settings.model_api_key:
        logger.warning(
            "MODEL_API_KEY is empty. LiteLLM will fall back to provider "
            "environment variables (e.g. GEMINI_API_KEY)."
        )

    Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)
    init_db()

    yield  # App runs here


app = FastAPI(
    title="Smart Mailbox API",
    description=(
        "Analyze photographed or uploaded documents into organized records: a "
        "rectified image, a generated filename, a folder placement, metadata and "
        "detected calendar events.\n\n"
        "**Identity:** every user-scoped route reads the requester from the "
        "`X-User-Id` header, set by the authenticating proxy in front of the service."
    ),
    version=__version__,
    lifespan=lifespan,
)

# Middleware stack (outermost first, CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "X-User-Id", "X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(MailboxException, mailbox_exception_handler)

logger.info(
    "Smart Mailbox API started | env=%s | db=%s | vision=%s | image=%s",
    settings.environment.value,
    "SQLite" if DATABASE_URL.startswith("sqlite") else DATABASE_URL.split(":", 1)[0],
    settings.vision_model,
    settings.image_model,
)

app.include_router(analysis_router)
app.include_router(documents_router)
app.include_router(folders_router)
app.include_router(events_router)

# Serves LocalObjectStore objects under the URLs built from PUBLIC_BASE_URL.
app.mount("/files", StaticFiles(directory=settings.storage_dir, check_dir=False), name="files")


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "Smart Mailbox API",
        "version": __version__,
        "status": "running"
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check returning database status and uptime.

    Never raises: returns degraded status on DB failure so load balancers
    can still probe without receiving 5xx.
    """
    db_status = "ok"
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check database probe failed")
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": __version__,
    }
