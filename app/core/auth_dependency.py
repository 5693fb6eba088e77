"""
Authentication guards for the student and company surfaces.

Tokens travel in an httpOnly cookie (studentToken / companyToken); an
Authorization: Bearer header is accepted as a fallback for API clients.

The subscription/campaign flags are read from the token as issued at
login/signup and are not re-checked against the database per request.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core import config
from app.core.errors import RoleMismatch, SubscriptionRequired, Unauthenticated
from app.core.security import decode_access_token
from app.db.models.enums import UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class TokenClaims:
    """Claims attached to an authenticated request."""

    user_id: int
    email: str
    role: UserRole
    has_active_subscription: bool = False
    has_active_campaigns: bool = False
    company_id: Optional[int] = None

    def __str__(self) -> str:
        return f"TokenClaims(user_id={self.user_id}, role={self.role.value})"


def build_claims_payload(claims: TokenClaims) -> dict:
    """Serialize claims into the JWT payload shape."""
    payload = {
        "sub": str(claims.user_id),
        "userId": claims.user_id,
        "email": claims.email,
        "role": claims.role.value,
    }
    if claims.role == UserRole.STUDENT:
        payload["hasActiveSubscription"] = claims.has_active_subscription
    else:
        payload["companyId"] = claims.company_id
        payload["hasActiveCampaigns"] = claims.has_active_campaigns
    return payload


def _claims_from_payload(payload: dict, expected_role: UserRole) -> TokenClaims:
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        role = None

    if role != expected_role:
        logger.warning(
            f"Access denied: token role '{payload.get('role')}' but '{expected_role.value}' is required"
        )
        raise RoleMismatch(f"Access denied. {expected_role.value.title()} access required.")

    user_id = payload.get("userId")
    if user_id is None:
        raise Unauthenticated("Invalid or expired token")

    return TokenClaims(
        user_id=int(user_id),
        email=payload.get("email", ""),
        role=role,
        has_active_subscription=bool(payload.get("hasActiveSubscription", False)),
        has_active_campaigns=bool(payload.get("hasActiveCampaigns", False)),
        company_id=payload.get("companyId"),
    )


def _authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    cookie_name: str,
    expected_role: UserRole,
) -> TokenClaims:
    token = request.cookies.get(cookie_name)
    if not token and credentials:
        token = credentials.credentials

    if not token:
        raise Unauthenticated("Authentication required")

    payload = decode_access_token(token)
    claims = _claims_from_payload(payload, expected_role)
    logger.debug(f"Authenticated {claims}")
    return claims


def require_student(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    """
    FastAPI dependency for student endpoints.

    Raises:
        Unauthenticated: missing, malformed or expired token
        ServerMisconfigured: JWT_SECRET not set
        RoleMismatch: token belongs to a company
    """
    return _authenticate(request, credentials, config.STUDENT_COOKIE_NAME, UserRole.STUDENT)


def require_paid_student(claims: TokenClaims = Depends(require_student)) -> TokenClaims:
    """Student guard that also requires the token's active-subscription flag."""
    if not claims.has_active_subscription:
        logger.info(f"Subscription required: user_id={claims.user_id}")
        raise SubscriptionRequired("Active subscription required to access internships")
    return claims


def require_company(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    """FastAPI dependency for company endpoints."""
    return _authenticate(request, credentials, config.COMPANY_COOKIE_NAME, UserRole.COMPANY)
