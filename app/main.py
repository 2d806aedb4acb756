"""MacDir API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MacDirError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database provider configured on startup, connected on first use,
      disposed on shutdown via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py (keeps this module's imports small)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.infrastructure.database import init_db, close_db
from app.infrastructure.observability import setup_logging
from app.config import get_settings
from app.api.routes import health, session_gate, records

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if not settings.lock_pin and not settings.hardcore_pin:
        logger.critical("Neither LOCK_PIN nor HARDCORE_PIN is set — unlock will always fail")
    logger.info("MacDir API started")
    yield
    await close_db()
    logger.info("MacDir API shutting down")


app = FastAPI(
    title="MacDir API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(session_gate.router)
app.include_router(records.router)

register_error_handlers(app)
