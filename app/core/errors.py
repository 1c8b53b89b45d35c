"""Exception handlers that render errors as localized JSON."""

import logging
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import BloomhabitError
from app.core.i18n import detect_language, translate, STATUS_MESSAGE_KEYS, MESSAGES

logger = logging.getLogger(__name__)


def _status_text(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _error_body(request: Request, status_code: int, message: str, language: str) -> dict:
    return {
        "status_code": status_code,
        "message": message,
        "error": _status_text(status_code),
        "language": language,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }


async def bloomhabit_error_handler(request: Request, exc: BloomhabitError) -> JSONResponse:
    language = detect_language(request)
    if exc.message_key in MESSAGES:
        message = translate(exc.message_key, language, **exc.params)
    else:
        message = exc.message or translate("errors.internal", language)

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, message, language),
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    language = detect_language(request)
    key = STATUS_MESSAGE_KEYS.get(exc.status_code)
    if key:
        message = translate(key, language)
    elif exc.status_code >= 500:
        message = translate("errors.internal", language)
    else:
        message = str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, message, language),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    language = detect_language(request)
    return JSONResponse(
        status_code=500,
        content=_error_body(request, 500, translate("errors.internal", language), language),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the localized error handlers to an application."""
    app.add_exception_handler(BloomhabitError, bloomhabit_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
