import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import register_exception_handlers
from app.api import (
    ai,
    analysis,
    auth,
    config,
    export,
    goals,
    habits,
    health_data,
    i18n,
    integrations,
    performance,
    users,
    wearables,
)
from app.services.scheduler import start_scheduler, stop_scheduler

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Silence noisy third-party loggers
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('apscheduler').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    await init_db()
    start_scheduler()
    logger.info("Bloomhabit API started")
    yield
    # Shutdown
    stop_scheduler()


# Create FastAPI application
app = FastAPI(
    title="Bloomhabit",
    description="Habit tracking where every habit grows as a flower in your garden",
    version=config.VERSION,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include routers
app.include_router(config.router)
app.include_router(i18n.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(habits.router)
app.include_router(goals.router)
app.include_router(ai.router)
app.include_router(wearables.router)
app.include_router(health_data.router)
app.include_router(integrations.router)
app.include_router(analysis.router)
app.include_router(export.router)
app.include_router(performance.router)
