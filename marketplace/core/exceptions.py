# marketplace/core/exceptions.py
"""Domain error taxonomy and its HTTP rendering"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        data = {"error": self.kind, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


class ValidationError(MarketplaceError):
    """Malformed or missing input"""
    status_code = status.HTTP_400_BAD_REQUEST


class FormatError(ValidationError):
    """A time or date string is not in the expected shape"""


class AuthenticationError(MarketplaceError):
    """No credential, or the credential does not resolve to a user"""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(MarketplaceError):
    """Valid credential, but the actor may not do this to this entity"""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(MarketplaceError):
    """Action not legal from the appointment's current status"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, action: str, current_status: str):
        super().__init__(
            f"Action '{action}' not allowed on appointment with status: {current_status}"
        )
        self.action = action
        self.current_status = current_status


class TimeConversionError(MarketplaceError):
    """Timezone or date arithmetic could not be computed"""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(MarketplaceError):
    """The appointment changed underneath a concurrent request"""
    status_code = status.HTTP_409_CONFLICT


class NotificationError(MarketplaceError):
    """Best-effort delivery failure. Logged, never surfaced."""


def _first_error_field(exc: RequestValidationError) -> Optional[str]:
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        if loc:
            return ".".join(loc)
    return None


def register_exception_handlers(app: FastAPI) -> None:
    """Render domain errors as {"error", "message", "field"?} JSON bodies"""

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        if exc.status_code >= 500:
            logger.error(f"{exc.kind} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.kind} on {request.url.path}: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        field = _first_error_field(exc)
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        logger.warning(f"Validation error for {request.url.path}: {errors}")
        error = ValidationError(f"{field}: {detail}" if field else detail, field=field)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
