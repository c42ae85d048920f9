"""dispatchsync — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from dispatchsync.adapters.persistence.database import engine
from dispatchsync.config import settings
from dispatchsync.infrastructure.api.routes_dispatches import router as dispatches_router
from dispatchsync.infrastructure.api.routes_health import router as health_router
from dispatchsync.infrastructure.api.routes_notifications import router as notifications_router
from dispatchsync.infrastructure.api.routes_schedule import router as schedule_router
from dispatchsync.infrastructure.api.routes_triggers import router as triggers_router
from dispatchsync.infrastructure.scheduler.jobs import init_sync_scheduler, scheduler

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database not available on startup: %s", e)

    if settings.scheduler_enabled:
        init_sync_scheduler(scheduler, settings)
        scheduler.start()
    else:
        logger.info("Scheduler disabled; sweep runs only on demand")

    yield

    scheduler.shutdown()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="dispatchsync — Dispatch Status Reconciliation",
        description="Keeps dispatch status, schedule records and notifications in line with driver progress",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(dispatches_router, prefix="/api")
    app.include_router(triggers_router, prefix="/api")
    app.include_router(schedule_router, prefix="/api")
    app.include_router(notifications_router, prefix="/api")

    return app


app = create_app()
