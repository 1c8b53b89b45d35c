"""Localization API endpoints."""

from fastapi import APIRouter, Request

from app.core.config import get_settings
from app.core.i18n import SUPPORTED_LANGUAGES, catalog, detect_language

router = APIRouter(prefix="/api/i18n", tags=["i18n"])


@router.get("/languages")
async def get_languages():
    """Supported languages and the server default."""
    return {
        "languages": [{"code": code, "name": name} for code, name in SUPPORTED_LANGUAGES.items()],
        "default": get_settings().default_language,
    }


@router.get("/messages")
async def get_messages(request: Request):
    """Message catalog for the request's language."""
    lang = detect_language(request)
    return {"language": lang, "messages": catalog(lang)}
