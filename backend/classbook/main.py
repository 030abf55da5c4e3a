# backend/classbook/main.py
"""
FastAPI application factory for the Classbook engine.

Run with:
    uvicorn classbook.main:create_app --factory
"""

from contextlib import asynccontextmanager
from datetime import date
import logging
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, FastAPI
from sqlalchemy.engine import Engine

from .core.config import Settings, settings as default_settings
from .core.time_windows import Clock
from .database import build_engine, build_session_factory, create_schema
from .routes import health, prometheus
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import classes as classes_v1
from .routes.v1 import members as members_v1
from .routes.v1 import statistics as statistics_v1

API_TITLE = "Classbook API"
API_DESCRIPTION = "Class scheduling and booking engine"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting %s v%s (%s)", API_TITLE, API_VERSION, app.state.settings.environment)
    yield
    logger.info("Shutting down, disposing store engine")
    app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the application around an engine the caller can own.

    Args:
        settings: Application settings; defaults to the environment-derived instance
        engine: Pre-built engine (tests pass one); built from settings otherwise
        clock: "today" provider for date rules
    """
    settings = settings or default_settings
    logging.getLogger().setLevel(settings.log_level)

    engine = engine or build_engine(settings)
    create_schema(engine)

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.clock = clock or date.today

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(classes_v1.router, prefix="/classes")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(members_v1.router, prefix="/members")
    api_v1.include_router(statistics_v1.router, prefix="/statistics")

    app.include_router(api_v1)
    app.include_router(health.router)
    app.include_router(prometheus.router)

    return app
