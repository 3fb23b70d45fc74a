"""FastAPI application setup for the run planner."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .alarm_scheduler import AlarmScheduler
from .api import router as api_router
from .config import settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the alarm loop for the lifetime of the app when enabled."""
    scheduler = None
    if settings.alarm_loop_enabled:
        scheduler = AlarmScheduler(poll_seconds=settings.alarm_poll_seconds)
        scheduler.start()
    else:
        logger.info("Alarm loop disabled; monitored events will not be re-checked")
    app.state.alarm_scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


app = FastAPI(title="Run Planner", lifespan=lifespan)

# API routes
app.include_router(api_router, prefix="/v1")
