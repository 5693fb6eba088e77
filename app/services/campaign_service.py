"""
Campaign lifecycle for companies.

Launching writes the campaign and its payment record in one transaction.
Internships under a campaign are visible to students only while the campaign
is ACTIVE; pausing or completing it hides them without touching the
internships themselves.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.clock import to_utc_naive
from app.core.errors import NotFound, ValidationError
from app.db.models.application import Application
from app.db.models.campaign import Campaign, CampaignPayment
from app.db.models.company import Company
from app.db.models.enums import CampaignStatus, PaymentStatus
from app.db.models.user import User
from app.schemas.campaign import CampaignLaunchRequest, CampaignUpdateRequest

logger = logging.getLogger(__name__)

# EXPIRED is derived from end_date by expire_ended_campaigns()
EDITABLE_STATUSES = (CampaignStatus.ACTIVE, CampaignStatus.PAUSED, CampaignStatus.COMPLETED)


def get_company_for_user(db: Session, user_id: int) -> Company:
    """Company owned by a COMPANY user."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.company:
        raise NotFound("Company not found")
    return user.company


def get_owned_campaign(db: Session, company: Company, campaign_id: int) -> Campaign:
    campaign = (
        db.query(Campaign)
        .filter(Campaign.id == campaign_id, Campaign.company_id == company.id)
        .first()
    )
    if not campaign:
        raise NotFound("Campaign not found")
    return campaign


def launch_campaign(db: Session, user_id: int, data: CampaignLaunchRequest) -> Campaign:
    """
    Create an ACTIVE campaign together with its payment record.

    The payment is COMPLETED (and stamped paid) when a transaction id is
    supplied, PENDING otherwise. Either both rows are written or neither is.

    Raises:
        ValidationError: a required field is missing or not positive
        NotFound: the user has no company
    """
    if not data.title or not data.budget or not data.end_date \
            or not data.max_internships or not data.payment_method:
        raise ValidationError("Missing required fields")
    if data.budget <= 0 or data.max_internships <= 0:
        raise ValidationError("Budget and maxInternships must be positive")

    company = get_company_for_user(db, user_id)
    now = datetime.utcnow()
    paid = bool(data.transaction_id)

    try:
        campaign = Campaign(
            company_id=company.id,
            title=data.title,
            description=data.description,
            budget=float(data.budget),
            end_date=to_utc_naive(data.end_date),
            max_internships=int(data.max_internships),
            status=CampaignStatus.ACTIVE,
            start_date=now,
        )
        db.add(campaign)
        db.flush()

        db.add(CampaignPayment(
            campaign_id=campaign.id,
            amount=float(data.budget),
            payment_method=data.payment_method,
            transaction_id=data.transaction_id,
            status=PaymentStatus.COMPLETED if paid else PaymentStatus.PENDING,
            paid_at=now if paid else None,
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(campaign)
    logger.info(
        f"Campaign launched: campaign_id={campaign.id}, company_id={company.id}, "
        f"budget={campaign.budget}, payment={campaign.payment.status.value}"
    )
    return campaign


def list_campaigns(db: Session, user_id: int) -> List[Campaign]:
    company = get_company_for_user(db, user_id)
    return (
        db.query(Campaign)
        .filter(Campaign.company_id == company.id)
        .order_by(Campaign.created_at.desc(), Campaign.id.desc())
        .all()
    )


def get_campaign(db: Session, user_id: int, campaign_id: int) -> Campaign:
    company = get_company_for_user(db, user_id)
    return get_owned_campaign(db, company, campaign_id)


def update_campaign(
    db: Session, user_id: int, campaign_id: int, data: CampaignUpdateRequest
) -> Campaign:
    """
    Apply a partial update to an owned campaign.

    Only fields present in the request are changed. Status may move between
    ACTIVE, PAUSED and COMPLETED.

    Raises:
        NotFound: company or campaign missing / not owned
        ValidationError: status not settable
    """
    campaign = get_campaign(db, user_id, campaign_id)
    provided = data.model_fields_set

    new_status = None
    if data.status is not None:
        try:
            new_status = CampaignStatus(data.status)
        except ValueError:
            new_status = None
        if new_status not in EDITABLE_STATUSES:
            raise ValidationError(
                "Invalid status. Must be one of: " + ", ".join(s.value for s in EDITABLE_STATUSES)
            )

    if data.title:
        campaign.title = data.title
    if "description" in provided:
        campaign.description = data.description
    if data.end_date:
        campaign.end_date = to_utc_naive(data.end_date)
    if new_status is not None:
        campaign.status = new_status

    db.commit()
    db.refresh(campaign)
    logger.info(f"Campaign updated: campaign_id={campaign.id}, status={campaign.status.value}")
    return campaign


def count_paid_active_campaigns(
    db: Session, company_id: int, now: Optional[datetime] = None
) -> Tuple[int, int]:
    """
    Count the company's running campaigns.

    Returns:
        Tuple of (paid, total) over campaigns that are ACTIVE with end_date
        in the future; paid counts those whose payment is COMPLETED.
    """
    now = now or datetime.utcnow()
    running = (
        db.query(Campaign)
        .filter(
            Campaign.company_id == company_id,
            Campaign.status == CampaignStatus.ACTIVE,
            Campaign.end_date > now,
        )
        .all()
    )
    paid = sum(1 for campaign in running if campaign.is_paid)
    return paid, len(running)


def has_active_paid_campaigns(db: Session, company_id: int) -> bool:
    paid, _ = count_paid_active_campaigns(db, company_id)
    return paid > 0


def expire_ended_campaigns(db: Session, now: Optional[datetime] = None) -> int:
    """Mark ACTIVE or PAUSED campaigns whose end_date has passed as EXPIRED."""
    now = now or datetime.utcnow()
    count = (
        db.query(Campaign)
        .filter(
            Campaign.status.in_([CampaignStatus.ACTIVE, CampaignStatus.PAUSED]),
            Campaign.end_date <= now,
        )
        .update({Campaign.status: CampaignStatus.EXPIRED}, synchronize_session=False)
    )
    db.commit()
    if count:
        logger.info(f"Expired {count} ended campaign(s)")
    return count


def _payment_payload(payment: Optional[CampaignPayment], detailed: bool = False) -> Dict:
    payload = {
        "status": payment.status.value if payment else None,
        "paidAt": payment.paid_at if payment else None,
        "paymentMethod": payment.payment_method if payment else None,
    }
    if detailed:
        payload["amount"] = payment.amount if payment else None
        payload["transactionId"] = payment.transaction_id if payment else None
    return payload


def format_campaign(campaign: Campaign) -> Dict:
    """Campaign fields shared by every campaign response."""
    return {
        "id": campaign.id,
        "title": campaign.title,
        "description": campaign.description,
        "budget": campaign.budget,
        "status": campaign.status.value,
        "startDate": campaign.start_date,
        "endDate": campaign.end_date,
        "maxInternships": campaign.max_internships,
        "currentInternships": len(campaign.internships),
        "createdAt": campaign.created_at,
        "updatedAt": campaign.updated_at,
    }


def format_campaign_summary(campaign: Campaign) -> Dict:
    payload = format_campaign(campaign)
    payload["payment"] = _payment_payload(campaign.payment)
    payload["internships"] = [
        {"id": internship.id, "title": internship.title, "isActive": internship.is_active}
        for internship in campaign.internships
    ]
    return payload


def format_campaign_detail(db: Session, campaign: Campaign) -> Dict:
    internship_ids = [internship.id for internship in campaign.internships]
    counts = {}
    if internship_ids:
        counts = dict(
            db.query(Application.internship_id, func.count(Application.id))
            .filter(Application.internship_id.in_(internship_ids))
            .group_by(Application.internship_id)
            .all()
        )

    payload = format_campaign(campaign)
    payload["payment"] = _payment_payload(campaign.payment, detailed=True)
    payload["internships"] = [
        {
            "id": internship.id,
            "title": internship.title,
            "description": internship.description,
            "location": internship.location,
            "type": internship.type.value,
            "stipend": internship.stipend,
            "duration": internship.duration,
            "isActive": internship.is_active,
            "postedAt": internship.posted_at,
            "deadline": internship.deadline,
            "applicationCount": counts.get(internship.id, 0),
            "skills": [{"id": s.id, "name": s.name} for s in internship.skills],
            "tags": [{"id": t.id, "name": t.name} for t in internship.tags],
        }
        for internship in sorted(campaign.internships, key=lambda i: i.id)
    ]
    return payload
