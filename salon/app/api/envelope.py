"""
Uniform response envelope.

Every body is ``{success, data?, error?, details?, message?}``. Successful
endpoints build it with ``ok``; failures are raised as ``SalonError`` and
turned into the envelope by the handlers registered here.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from salon.app.core.errors import AuthError, SalonError

logger = logging.getLogger(__name__)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = _dump(data)
    if message:
        body["message"] = message
    body.update({k: _dump(v) for k, v in extra.items()})
    return body


def error_body(error: str, details: Optional[str] = None, **extra: Any) -> dict:
    body: dict = {"success": False, "error": error}
    if details:
        body["details"] = details
    body.update(extra)
    return body


async def salon_error_handler(request: Request, exc: SalonError) -> JSONResponse:
    extra: dict = {}
    if isinstance(exc, AuthError):
        extra = {"authenticated": False, "message": exc.error}
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error, exc.details, **extra),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(status_code=400, content=error_body("Invalid request", "; ".join(problems)))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    return JSONResponse(status_code=409, content=error_body("Conflicting data", str(exc.orig)))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_body("Internal server error", str(exc)[:200]))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SalonError, salon_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
