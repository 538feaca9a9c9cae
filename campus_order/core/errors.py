"""
Application error taxonomy and exception handlers

Services raise these exceptions; the handlers registered in main.py turn
them into `{"error": ...}` JSON responses with the matching status code.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, List, Optional
import structlog

from campus_order.core.config import get_settings

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base class for errors that map to an HTTP response"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = GENERIC_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None, issues: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.issues = issues
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.issues:
            body["issues"] = self.issues
        return body


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class InvalidPayload(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidQuantity(InvalidPayload):
    default_message = "Invalid quantity"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ShopClosed(AppError):
    """Raised while the shop is closed; carries the configured closed message"""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Shop is currently closed"


class SlugGenerationError(InvalidPayload):
    default_message = "Unable to generate slug"


class Internal(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def format_validation_issues(errors) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into JSON-safe {path, message} pairs"""
    issues = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        issues.append({
            "path": ".".join(location),
            "message": error.get("msg", "Invalid value"),
        })
    return issues


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = format_validation_issues(exc.errors())
    first = issues[0] if issues else {"path": "", "message": "Invalid input"}
    message = f"{first['path']}: {first['message']}" if first["path"] else first["message"]
    logger.info(f"Validation failed on {request.method} {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "issues": issues},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if get_settings().is_production:
        logger.error(f"Unhandled error on {request.method} {request.url.path}")
    else:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": GENERIC_ERROR_MESSAGE},
    )


def register_exception_handlers(app: FastAPI):
    """Attach the error handlers to the application"""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
