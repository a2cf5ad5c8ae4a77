"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import scheduler
from api import app_settings, holdings, portfolio, quotes
from config import settings
from database import get_session_local, init_db
from logging_config import setup_logging
from services.settings_service import SettingsService

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start auto refresh on startup."""
    init_db()

    if settings.AUTO_REFRESH_ENABLED:
        SessionLocal = get_session_local()
        db = SessionLocal()
        try:
            stored = SettingsService.get_settings(db)
            if stored.auto_refresh_enabled:
                scheduler.start_scheduler(stored.refresh_interval_minutes)
        except Exception:
            logger.warning("Auto refresh failed to start", exc_info=True)
        finally:
            db.close()

    yield

    scheduler.stop_scheduler()


app = FastAPI(
    title="Quotefolio",
    description="Multi-market holdings valuation and rebalancing",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for the presentation layer
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(quotes.router)
app.include_router(holdings.router)
app.include_router(portfolio.router)
app.include_router(app_settings.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
