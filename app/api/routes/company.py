"""
Company endpoints: campaigns, internship postings and received applications.

All routes require a company token.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import TokenClaims, require_company
from app.core.errors import InternalError, MarketplaceError
from app.db.session import get_db
from app.schemas.application import StatusUpdateRequest
from app.schemas.campaign import CampaignLaunchRequest, CampaignUpdateRequest
from app.schemas.internship import InternshipCreateRequest
from app.services import application_service, campaign_service, internship_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company", tags=["Company"])


# ✅ CAMPAIGNS
@router.post("/campaigns", status_code=status.HTTP_201_CREATED)
def launch_campaign(
    data: CampaignLaunchRequest,
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    """Create a campaign and its payment record."""
    try:
        campaign = campaign_service.launch_campaign(db, claims.user_id, data)
        return {
            "success": True,
            "message": "Campaign created successfully",
            "campaign": campaign_service.format_campaign_summary(campaign),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to launch campaign: {e}", exc_info=True)
        raise InternalError()


@router.get("/campaigns")
def list_campaigns(
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    try:
        campaigns = campaign_service.list_campaigns(db, claims.user_id)
        return {
            "success": True,
            "campaigns": [campaign_service.format_campaign_summary(c) for c in campaigns],
        }
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to list campaigns: {e}", exc_info=True)
        raise InternalError()


@router.get("/campaigns/{campaign_id}")
def get_campaign(
    campaign_id: int,
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    try:
        campaign = campaign_service.get_campaign(db, claims.user_id, campaign_id)
        return {"success": True, "campaign": campaign_service.format_campaign_detail(db, campaign)}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to get campaign: {e}", exc_info=True)
        raise InternalError()


@router.put("/campaigns/{campaign_id}")
def update_campaign(
    campaign_id: int,
    data: CampaignUpdateRequest,
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    """Partial update: title, description, endDate, status."""
    try:
        campaign = campaign_service.update_campaign(db, claims.user_id, campaign_id, data)
        return {
            "success": True,
            "message": "Campaign updated successfully",
            "campaign": campaign_service.format_campaign(campaign),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update campaign: {e}", exc_info=True)
        raise InternalError()


# ✅ INTERNSHIPS
@router.post("/campaigns/{campaign_id}/internships", status_code=status.HTTP_201_CREATED)
def post_internship(
    campaign_id: int,
    data: InternshipCreateRequest,
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    try:
        internship = internship_service.post_internship(db, claims.user_id, campaign_id, data)
        return {
            "success": True,
            "message": "Internship posted successfully",
            "internship": internship_service.format_internship_card(internship, 0, None),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to post internship: {e}", exc_info=True)
        raise InternalError()


# ✅ APPLICATIONS
@router.get("/campaigns/{campaign_id}/applications")
def list_campaign_applications(
    campaign_id: int,
    status_filter: Optional[str] = Query(None, alias="status"),
    internship_id: Optional[int] = Query(None, alias="internshipId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|status)$"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    try:
        result = application_service.list_campaign_applications(
            db,
            claims.user_id,
            campaign_id,
            status=status_filter,
            internship_id=internship_id,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return {"success": True, **result}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to list campaign applications: {e}", exc_info=True)
        raise InternalError()


@router.get("/applications/{application_id}")
def get_application(
    application_id: int,
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    try:
        application = application_service.get_company_application(db, claims.user_id, application_id)
        return {"success": True, "application": application}
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Failed to get application: {e}", exc_info=True)
        raise InternalError()


@router.post("/applications/{application_id}")
def update_application_status(
    application_id: int,
    data: StatusUpdateRequest,
    claims: TokenClaims = Depends(require_company),
    db: Session = Depends(get_db),
):
    """Move an application to PENDING, SHORTLISTED, ACCEPTED or REJECTED."""
    try:
        application = application_service.update_application_status(
            db, claims.user_id, application_id, data.status
        )
        return {
            "success": True,
            "message": f"Application status updated to {application.status.value}",
            "application": application_service.format_company_application(application),
        }
    except MarketplaceError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update application status: {e}", exc_info=True)
        raise InternalError()
