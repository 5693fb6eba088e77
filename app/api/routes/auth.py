"""
Signup, login and logout endpoints for both roles.

Tokens are returned in the body and set as an httpOnly cookie
(studentToken / companyToken).
"""
import logging
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import InternalError, MarketplaceError
from app.db.session import get_db
from app.schemas.auth import CompanySignupRequest, LoginRequest, StudentSignupRequest
from app.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


# ✅ STUDENT
@router.post("/student/signup", status_code=status.HTTP_201_CREATED)
def student_signup(
    data: StudentSignupRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    try:
        payload, token = auth_service.signup_student(db, data)
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Student signup failed: {e}", exc_info=True)
        raise InternalError()

    auth_service.set_auth_cookie(response, config.STUDENT_COOKIE_NAME, token)
    return payload


@router.post("/student/login")
def student_login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    try:
        payload, token = auth_service.login_student(db, data)
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Student login failed: {e}", exc_info=True)
        raise InternalError()

    auth_service.set_auth_cookie(response, config.STUDENT_COOKIE_NAME, token)
    return payload


@router.post("/student/logout")
def student_logout(response: Response):
    auth_service.clear_auth_cookie(response, config.STUDENT_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}


# ✅ COMPANY
@router.post("/company/signup", status_code=status.HTTP_201_CREATED)
def company_signup(
    data: CompanySignupRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    try:
        payload, token = auth_service.signup_company(db, data)
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Company signup failed: {e}", exc_info=True)
        raise InternalError()

    auth_service.set_auth_cookie(response, config.COMPANY_COOKIE_NAME, token)
    return payload


@router.post("/company/login")
def company_login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    try:
        payload, token = auth_service.login_company(db, data)
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Company login failed: {e}", exc_info=True)
        raise InternalError()

    auth_service.set_auth_cookie(response, config.COMPANY_COOKIE_NAME, token)
    return payload


@router.post("/company/logout")
def company_logout(response: Response):
    auth_service.clear_auth_cookie(response, config.COMPANY_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}
