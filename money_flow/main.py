"""
Money Flow Ledger: FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from money_flow.config import get_settings
from money_flow.logging_config import configure_logging
from money_flow.models.base import SessionLocal
from money_flow.seed import seed_money_flow
from money_flow.api.health import router as health_router
from money_flow.api.money_flow import router as money_flow_router
from money_flow.api.analytics import router as analytics_router

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Seed demo data on startup when SEED_DEMO_DATA is enabled."""
    if settings.SEED_DEMO_DATA:
        with SessionLocal() as db:
            seed_money_flow(db)
            db.commit()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Money flow ledger with time-bucketed reporting and analytics",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(money_flow_router)
app.include_router(analytics_router)
