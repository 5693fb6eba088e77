"""
Signup and login for students and companies.

Each operation returns (response_payload, token); the router puts the token
in the role's httpOnly cookie. Token flags are computed here, once, and
carried by the token until the next login.
"""
import logging
import re
from typing import Dict, Optional, Tuple

from fastapi import Response
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import config
from app.core.auth_dependency import TokenClaims, build_claims_payload
from app.core.errors import Conflict, Unauthenticated, ValidationError
from app.core.security import (
    create_access_token,
    hash_password,
    require_signing_secret,
    verify_password,
)
from app.db.models.company import Company
from app.db.models.enums import UserRole
from app.db.models.user import User
from app.schemas.auth import CompanySignupRequest, LoginRequest, StudentSignupRequest
from app.services.campaign_service import count_paid_active_campaigns, has_active_paid_campaigns
from app.services.subscription_service import get_active_subscription, has_active_subscription

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
WEBSITE_PATTERN = re.compile(r"^https?://.+\..+$")
PASSWORD_MIN_LENGTH = 6
COOKIE_MAX_AGE = config.TOKEN_EXPIRE_DAYS * 24 * 60 * 60

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _validate_credentials(email: str, password: Optional[str]) -> None:
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please provide a valid email address")
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")


def _ensure_email_available(db: Session, email: str) -> None:
    if db.query(User).filter(User.email == email).first():
        raise Conflict("User with this email already exists")


def issue_token(claims: TokenClaims) -> str:
    return create_access_token(build_claims_payload(claims))


def set_auth_cookie(response: Response, cookie_name: str, token: str) -> None:
    response.set_cookie(
        key=cookie_name,
        value=token,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax",
        max_age=COOKIE_MAX_AGE,
    )


def clear_auth_cookie(response: Response, cookie_name: str) -> None:
    response.delete_cookie(
        key=cookie_name,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax",
    )


def student_claims(db: Session, user: User) -> TokenClaims:
    return TokenClaims(
        user_id=user.id,
        email=user.email,
        role=UserRole.STUDENT,
        has_active_subscription=has_active_subscription(db, user.id),
    )


def signup_student(db: Session, data: StudentSignupRequest) -> Tuple[Dict, str]:
    """
    Register a STUDENT user.

    Raises:
        ValidationError: missing field, malformed email or short password
        Conflict: email already registered
        ServerMisconfigured: JWT_SECRET not set
    """
    if not data.name or not data.email or not data.password:
        raise ValidationError("Name, email, and password are required")

    email = normalize_email(data.email)
    _validate_credentials(email, data.password)
    _ensure_email_available(db, email)
    require_signing_secret()

    user = User(
        name=data.name.strip(),
        email=email,
        password_hash=hash_password(data.password),
        role=UserRole.STUDENT,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User with this email already exists")
    db.refresh(user)

    token = issue_token(TokenClaims(user_id=user.id, email=user.email, role=UserRole.STUDENT))
    logger.info(f"Student registered: user_id={user.id}")

    payload = {
        "success": True,
        "message": "Student registration successful",
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "hasActiveSubscription": False,
        },
        "token": token,
        "nextStep": "choose-plan",
    }
    return payload, token


def signup_company(db: Session, data: CompanySignupRequest) -> Tuple[Dict, str]:
    """
    Register a COMPANY user together with its company, in one transaction.

    Raises:
        ValidationError: missing field, malformed email/website or short password
        Conflict: email or company name (case-insensitive) already taken
        ServerMisconfigured: JWT_SECRET not set
    """
    if not data.name or not data.email or not data.password or not data.company_name:
        raise ValidationError("Name, email, password, and company name are required")

    email = normalize_email(data.email)
    _validate_credentials(email, data.password)
    if data.company_website and not WEBSITE_PATTERN.match(data.company_website):
        raise ValidationError("Please provide a valid website URL")

    _ensure_email_available(db, email)
    company_name = data.company_name.strip()
    existing_company = (
        db.query(Company).filter(func.lower(Company.name) == company_name.lower()).first()
    )
    if existing_company:
        raise Conflict("A company with this name already exists")
    require_signing_secret()

    try:
        company = Company(
            name=company_name,
            website=data.company_website or None,
            description=data.company_description or None,
            logo_url=data.company_logo or None,
        )
        db.add(company)
        db.flush()

        user = User(
            name=data.name.strip(),
            email=email,
            password_hash=hash_password(data.password),
            role=UserRole.COMPANY,
            company_id=company.id,
        )
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User with this email already exists")
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    token = issue_token(TokenClaims(
        user_id=user.id,
        email=user.email,
        role=UserRole.COMPANY,
        company_id=company.id,
        has_active_campaigns=False,
    ))
    logger.info(f"Company registered: user_id={user.id}, company_id={company.id}")

    payload = {
        "success": True,
        "message": "Company registration successful",
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "company": {
                "id": company.id,
                "name": company.name,
                "website": company.website,
                "description": company.description,
                "logoUrl": company.logo_url,
                "activeCampaigns": 0,
                "totalCampaigns": 0,
            },
        },
        "token": token,
        "nextStep": "create-campaign",
    }
    return payload, token


def _find_user(db: Session, data: LoginRequest, role: UserRole) -> User:
    if not data.email or not data.password:
        raise ValidationError("Email and password are required")

    user = (
        db.query(User)
        .filter(User.email == normalize_email(data.email), User.role == role)
        .first()
    )
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"Failed {role.value.lower()} login attempt")
        raise Unauthenticated(INVALID_CREDENTIALS)
    return user


def login_student(db: Session, data: LoginRequest) -> Tuple[Dict, str]:
    """
    Authenticate a student.

    Raises:
        ValidationError: email or password missing
        Unauthenticated: no such student or wrong password
        ServerMisconfigured: JWT_SECRET not set
    """
    user = _find_user(db, data, UserRole.STUDENT)
    subscription = get_active_subscription(db, user.id)
    claims = TokenClaims(
        user_id=user.id,
        email=user.email,
        role=UserRole.STUDENT,
        has_active_subscription=subscription is not None,
    )
    token = issue_token(claims)
    logger.info(f"Student login: user_id={user.id}, subscribed={claims.has_active_subscription}")

    user_payload = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "hasActiveSubscription": claims.has_active_subscription,
    }
    if subscription:
        user_payload["subscription"] = {
            "plan": subscription.plan.name,
            "features": subscription.plan.features or [],
            "endsAt": subscription.ends_at,
        }

    payload = {
        "success": True,
        "message": "Student login successful",
        "user": user_payload,
        "token": token,
    }
    return payload, token


def login_company(db: Session, data: LoginRequest) -> Tuple[Dict, str]:
    """
    Authenticate a company user.

    Raises:
        ValidationError: email or password missing
        Unauthenticated: no such company user, no company, or wrong password
        ServerMisconfigured: JWT_SECRET not set
    """
    user = _find_user(db, data, UserRole.COMPANY)
    company = user.company
    if not company:
        raise Unauthenticated(INVALID_CREDENTIALS)

    paid, total = count_paid_active_campaigns(db, company.id)
    claims = TokenClaims(
        user_id=user.id,
        email=user.email,
        role=UserRole.COMPANY,
        company_id=company.id,
        has_active_campaigns=has_active_paid_campaigns(db, company.id),
    )
    token = issue_token(claims)
    logger.info(f"Company login: user_id={user.id}, company_id={company.id}, paid_campaigns={paid}")

    payload = {
        "success": True,
        "message": "Company login successful",
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "company": {
                "id": company.id,
                "name": company.name,
                "logoUrl": company.logo_url,
                "activeCampaigns": paid,
                "totalCampaigns": total,
            },
        },
        "token": token,
    }
    return payload, token
