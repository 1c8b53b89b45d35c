from fastapi import APIRouter
from pydantic import BaseModel

from app.core.config import get_settings

router = APIRouter(prefix="/api", tags=["config"])

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    status: str
    version: str


class ConfigResponse(BaseModel):
    tz: str
    default_language: str
    openai_model: str
    ai_enabled: bool
    cache_ttl_seconds: int
    queue_max_attempts: int
    monitoring_enabled: bool
    health_check_enabled: bool
    garden_check_hour: int
    integration_sync_interval_minutes: int
    debug: bool


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(status="ok", version=VERSION)


@router.get("/config", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration (excluding secrets)."""
    settings = get_settings()
    return ConfigResponse(
        tz=settings.tz,
        default_language=settings.default_language,
        openai_model=settings.openai_model,
        ai_enabled=bool(settings.openai_api_key),
        cache_ttl_seconds=settings.cache_ttl_seconds,
        queue_max_attempts=settings.queue_max_attempts,
        monitoring_enabled=settings.monitoring_enabled,
        health_check_enabled=settings.health_check_enabled,
        garden_check_hour=settings.garden_check_hour,
        integration_sync_interval_minutes=settings.integration_sync_interval_minutes,
        debug=settings.debug,
    )
