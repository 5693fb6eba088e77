"""
Domain errors for the marketplace API.

Every service raises a subclass of MarketplaceError; the exception handlers
registered in app.main render them as the standard JSON envelope:

    {"success": false, "message": "...", ...extra}
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging_config import sanitize_log_data

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base exception for marketplace errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload = {"success": False, "message": self.message}
        payload.update(self.extra)
        return payload


class ValidationError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class Unauthenticated(MarketplaceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class RoleMismatch(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "ROLE_MISMATCH"
    default_message = "Access denied"


class SubscriptionRequired(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "SUBSCRIPTION_REQUIRED"
    default_message = "Active subscription required to access internships"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("requiresSubscription", True)
        super().__init__(message, **extra)


class QuotaExceeded(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "QUOTA_EXCEEDED"

    def __init__(self, plan_name: str, used: int, limit: int):
        super().__init__(
            f"You have reached your monthly application limit of {limit}. "
            "Upgrade your plan for more applications.",
            limitReached=True,
            currentPlan=plan_name,
            applicationsUsed=used,
            applicationLimit=limit,
        )
        self.used = used
        self.limit = limit


class EditNotAllowed(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "EDIT_NOT_ALLOWED"
    default_message = "Only applications with PENDING status can be updated"


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class DuplicateApplication(Conflict):
    code = "DUPLICATE_APPLICATION"
    default_message = "You have already applied to this internship"


class Closed(MarketplaceError):
    code = "INTERNSHIP_CLOSED"
    default_message = "This internship is no longer accepting applications"


class CampaignInactive(MarketplaceError):
    code = "CAMPAIGN_INACTIVE"
    default_message = "This internship campaign is no longer active"


class DeadlinePassed(MarketplaceError):
    code = "DEADLINE_PASSED"
    default_message = "Application deadline has passed"


class InvalidTransition(MarketplaceError):
    code = "INVALID_TRANSITION"
    default_message = "Cannot change status of accepted application"


class ServerMisconfigured(MarketplaceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SERVER_MISCONFIGURED"
    default_message = "Server configuration error"


class InternalError(MarketplaceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", message)
    body = exc.body if isinstance(exc.body, dict) else {}
    logger.debug(
        f"Validation failed on {request.method} {request.url.path}: {message} body={sanitize_log_data(body)}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
