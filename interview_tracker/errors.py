"""Error taxonomy and the handlers that turn it into the JSON envelope."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def build_error_payload(message: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "message": message}
    if extra:
        payload.update(extra)
    return payload


class AppError(Exception):
    """Application-scoped error rendered as ``{success: false, message}``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        extra: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.extra = extra
        self.headers = headers


class ValidationError(AppError):
    status_code = 422


class NotFound(AppError):
    """Record absent or owned by someone else; both look the same to the caller."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidState(AppError):
    """A pipeline precondition does not hold. Terminal for the request."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_payload(exc.message, exc.extra),
        headers=exc.headers,
    )


def _field_name(loc: tuple | list) -> str:
    # ("body", "stages", 0, "stage_name") -> "stages.0.stage_name"
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


_CUSTOM_PREFIX = "Value error, "


def _describe(err: dict) -> dict[str, str]:
    field = _field_name(err.get("loc", ()))
    msg = err.get("msg", "Invalid value")
    # messages raised by our own validators are already full sentences
    if msg.startswith(_CUSTOM_PREFIX):
        return {"field": field, "message": msg[len(_CUSTOM_PREFIX):]}
    return {"field": field, "message": f"{field}: {msg}"}


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [_describe(err) for err in exc.errors()]
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content=build_error_payload(message, {"errors": errors}),
    )


def _integrity_kind(exc: IntegrityError) -> str:
    # sqlite: "UNIQUE constraint failed" / "FOREIGN KEY constraint failed"
    # postgres: sqlstate 23505 / 23503
    code = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    text = str(exc.orig).lower()
    if code == "23505" or "unique" in text or "duplicate" in text:
        return "unique"
    if code == "23503" or "foreign key" in text:
        return "foreign_key"
    return "other"


async def integrity_error_handler(_: Request, exc: IntegrityError) -> JSONResponse:
    kind = _integrity_kind(exc)
    if kind == "unique":
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=build_error_payload("A record with this value already exists."),
        )
    if kind == "foreign_key":
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=build_error_payload("Referenced record does not exist."),
        )
    logger.error("Unclassified integrity error: %s", exc.orig)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=build_error_payload("Internal Server Error"),
    )


async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Endpoint not found." if exc.status_code == 404 and exc.detail == "Not Found" else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_payload(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=build_error_payload("Internal Server Error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
