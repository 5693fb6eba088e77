"""
Student endpoints: internship browsing and applying, own applications,
plans and subscriptions.

Browsing and applying require a token whose hasActiveSubscription flag is
set; the remaining routes only require a student token.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core import config
from app.core.auth_dependency import TokenClaims, require_paid_student, require_student
from app.core.errors import InternalError, MarketplaceError
from app.db.models.enums import InternshipType
from app.db.session import get_db
from app.schemas.application import ApplyRequest, CoverLetterUpdateRequest
from app.schemas.internship import InternshipFilters
from app.schemas.subscription import SubscribeRequest
from app.services import (
    application_service,
    auth_service,
    internship_service,
    quota_service,
    subscription_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/student", tags=["Student"])


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


# ✅ INTERNSHIPS
@router.get("/internships")
def browse_internships(
    type: Optional[InternshipType] = Query(None),
    location: Optional[str] = Query(None),
    min_stipend: Optional[int] = Query(None, alias="minStipend", ge=0),
    max_stipend: Optional[int] = Query(None, alias="maxStipend", ge=0),
    skills: Optional[str] = Query(None, description="Comma-separated skill names"),
    tags: Optional[str] = Query(None, description="Comma-separated tag names"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("postedAt", alias="sortBy", pattern="^(postedAt|deadline|stipend)$"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    claims: TokenClaims = Depends(require_paid_student),
    db: Session = Depends(get_db),
):
    filters = InternshipFilters(
        type=type,
        location=location,
        min_stipend=min_stipend,
        max_stipend=max_stipend,
        skills=_split_csv(skills),
        tags=_split_csv(tags),
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    try:
        result = internship_service.browse_internships(db, claims.user_id, filters)
        return {"success": True, **result}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to browse internships: {e}", exc_info=True)
        raise InternalError()


@router.get("/internships/{internship_id}")
def get_internship(
    internship_id: int,
    claims: TokenClaims = Depends(require_paid_student),
    db: Session = Depends(get_db),
):
    try:
        internship = internship_service.get_internship_detail(db, claims.user_id, internship_id)
        return {"success": True, "internship": internship}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to get internship: {e}", exc_info=True)
        raise InternalError()


@router.post("/internships/{internship_id}/apply", status_code=status.HTTP_201_CREATED)
def apply(
    internship_id: int,
    data: ApplyRequest,
    claims: TokenClaims = Depends(require_paid_student),
    db: Session = Depends(get_db),
):
    """Submit an application; the full eligibility gate runs in the service."""
    try:
        application = application_service.apply_to_internship(
            db, claims.user_id, internship_id, data.cover_letter
        )
        return {
            "success": True,
            "message": "Application submitted successfully",
            "application": application_service.format_application(application),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to submit application: {e}", exc_info=True)
        raise InternalError()


# ✅ APPLICATIONS
@router.get("/applications")
def list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|updatedAt)$"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    try:
        result = application_service.list_student_applications(
            db,
            claims.user_id,
            status=status_filter,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return {"success": True, **result}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to list applications: {e}", exc_info=True)
        raise InternalError()


@router.get("/applications/{application_id}")
def get_application(
    application_id: int,
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    try:
        application = application_service.get_student_application(db, claims.user_id, application_id)
        return {"success": True, "application": application}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to get application: {e}", exc_info=True)
        raise InternalError()


@router.put("/applications/{application_id}")
def update_cover_letter(
    application_id: int,
    data: CoverLetterUpdateRequest,
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    """Edit the cover letter while the application is still PENDING."""
    try:
        application = application_service.edit_cover_letter(
            db, claims.user_id, application_id, data.cover_letter
        )
        return {
            "success": True,
            "message": "Application updated successfully",
            "application": application_service.format_application(application),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update application: {e}", exc_info=True)
        raise InternalError()


# ✅ PLANS & SUBSCRIPTIONS
@router.get("/plans")
def list_plans(
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    plans = subscription_service.list_plans(db)
    return {"success": True, "plans": [subscription_service.format_plan(p) for p in plans]}


@router.get("/subscriptions")
def list_subscriptions(
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    subscriptions = subscription_service.list_subscriptions(db, claims.user_id)
    active = subscription_service.get_active_subscription(db, claims.user_id)
    return {
        "success": True,
        "hasActiveSubscription": active is not None,
        "subscriptions": [subscription_service.format_subscription(s) for s in subscriptions],
    }


@router.post("/subscriptions", status_code=status.HTTP_201_CREATED)
def subscribe(
    data: SubscribeRequest,
    response: Response,
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    """
    Subscribe to a plan.

    The student cookie is re-issued so the new subscription flag applies
    without logging in again.
    """
    try:
        subscription = subscription_service.subscribe(
            db, claims.user_id, data.plan_id, data.payment_method, data.transaction_id
        )
        fresh = auth_service.student_claims(db, subscription.user)
        token = auth_service.issue_token(fresh)
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to subscribe: {e}", exc_info=True)
        raise InternalError()

    auth_service.set_auth_cookie(response, config.STUDENT_COOKIE_NAME, token)
    return {
        "success": True,
        "message": "Subscription created successfully",
        "subscription": subscription_service.format_subscription(subscription),
        "hasActiveSubscription": fresh.has_active_subscription,
        "token": token,
    }


@router.post("/subscriptions/{subscription_id}/cancel")
def cancel_subscription(
    subscription_id: int,
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    try:
        subscription = subscription_service.cancel_subscription(db, claims.user_id, subscription_id)
        return {
            "success": True,
            "message": "Subscription canceled",
            "subscription": subscription_service.format_subscription(subscription),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to cancel subscription: {e}", exc_info=True)
        raise InternalError()


@router.get("/usage")
def get_usage(
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    """Current month application usage against the active plan's cap."""
    usage = quota_service.get_usage_for_response(db, claims.user_id)
    logger.debug(f"Usage summary requested: user_id={claims.user_id}, plan={usage['plan']}")
    return {"success": True, **usage}
