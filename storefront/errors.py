# storefront/errors.py

"""
Error taxonomy and the FastAPI handlers that turn it into JSON.
Every error body looks like {"error": str, "details"?: str}; details are
dropped when running in production.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.config import Settings, get_settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.details = details
        # Extra top-level keys for the response body (e.g. user_id)
        self.extra = extra


class ValidationError(StorefrontError):
    status_code = 400


class AuthError(StorefrontError):
    status_code = 401


class AuthorizationError(StorefrontError):
    status_code = 403


class NotFoundError(StorefrontError):
    status_code = 404


class DomainError(StorefrontError):
    """A business rule said no: duplicate email, missing product, not enough stock..."""
    status_code = 400


class StoreError(StorefrontError):
    """The data store rejected a statement; the message is the store's own."""
    status_code = 400

    @classmethod
    def wrap(cls, exc: SQLAlchemyError, message: Optional[str] = None) -> "StoreError":
        original = getattr(exc, "orig", None) or exc
        lines = str(original).splitlines() or ["Database error"]
        return cls(message or lines[0], details=str(original))


class UnexpectedError(StorefrontError):
    status_code = 500


def request_settings(request: Request) -> Settings:
    """The settings the app resolves for its routes, overrides included"""
    provider = request.app.dependency_overrides.get(get_settings, get_settings)
    return provider()


def error_body(settings: Settings, message: str, details: Optional[str] = None, **extra: Any) -> dict:
    body = {"error": message, **extra}
    if details and not settings.is_production:
        body["details"] = details
    return body


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    # Drop the "body"/"query" prefix FastAPI puts in front of the field path
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {message}" if loc else message


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.message, details=exc.details)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request_settings(request), exc.message, exc.details, **exc.extra),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=error_body(request_settings(request), _first_validation_message(exc)))


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    wrapped = StoreError.wrap(exc)
    logger.warning("store.rejected", path=request.url.path, error=wrapped.message)
    return JSONResponse(
        status_code=wrapped.status_code,
        content=error_body(request_settings(request), wrapped.message, wrapped.details),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(request_settings(request), "Internal server error", str(exc)),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
