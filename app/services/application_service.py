"""
Application workflow: eligibility gate, status changes and listings.

Status moves: PENDING -> SHORTLISTED | ACCEPTED | REJECTED,
SHORTLISTED -> ACCEPTED | REJECTED, REJECTED -> anything.
ACCEPTED is terminal.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    CampaignInactive,
    Closed,
    DeadlinePassed,
    DuplicateApplication,
    EditNotAllowed,
    InvalidTransition,
    NotFound,
    SubscriptionRequired,
    ValidationError,
)
from app.db.models.application import Application
from app.db.models.campaign import Campaign
from app.db.models.enums import ApplicationStatus, CampaignStatus
from app.db.models.internship import Internship
from app.services.campaign_service import get_company_for_user, get_owned_campaign
from app.services.listing import paginate, pagination_payload, status_summary
from app.services.quota_service import check_application_quota
from app.services.subscription_service import get_active_subscription

logger = logging.getLogger(__name__)

COVER_LETTER_MIN = 50
COVER_LETTER_MAX = 2000

STUDENT_SORT_COLUMNS = {
    "createdAt": Application.created_at,
    "updatedAt": Application.updated_at,
}

COMPANY_SORT_COLUMNS = {
    "createdAt": Application.created_at,
    "status": Application.status,
}


def validate_cover_letter(cover_letter: Optional[str]) -> str:
    """
    Return the trimmed cover letter.

    Raises:
        ValidationError: missing, or trimmed length outside [50, 2000]
    """
    text = (cover_letter or "").strip()
    if not text:
        raise ValidationError("Cover letter is required")
    if len(text) < COVER_LETTER_MIN:
        raise ValidationError(f"Cover letter must be at least {COVER_LETTER_MIN} characters long")
    if len(text) > COVER_LETTER_MAX:
        raise ValidationError(f"Cover letter must not exceed {COVER_LETTER_MAX} characters")
    return text


def _parse_status(value: Optional[str]) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise ValidationError(
            "Invalid status. Must be one of: " + ", ".join(s.value for s in ApplicationStatus)
        )


def apply_to_internship(
    db: Session,
    student_id: int,
    internship_id: int,
    cover_letter: Optional[str],
    now: Optional[datetime] = None,
) -> Application:
    """
    Submit an application after running the eligibility gate.

    Checks run in this order and stop at the first failure:
    cover letter, internship exists, internship open, campaign active,
    deadline, duplicate, subscription, monthly quota.

    Raises:
        ValidationError, NotFound, Closed, CampaignInactive, DeadlinePassed,
        DuplicateApplication, SubscriptionRequired, QuotaExceeded
    """
    text = validate_cover_letter(cover_letter)
    now = now or datetime.utcnow()

    internship = db.query(Internship).filter(Internship.id == internship_id).first()
    if not internship:
        raise NotFound("Internship not found")

    if not internship.is_active:
        raise Closed()

    if internship.campaign.status != CampaignStatus.ACTIVE:
        raise CampaignInactive()

    if now > internship.deadline:
        raise DeadlinePassed()

    if find_existing_application(db, student_id, internship.id):
        raise DuplicateApplication()

    subscription = get_active_subscription(db, student_id, now)
    if not subscription:
        raise SubscriptionRequired("Active subscription required to apply for internships")

    used, limit = check_application_quota(db, student_id, subscription.plan, now)

    application = Application(
        internship_id=internship.id,
        user_id=student_id,
        cover_letter=text,
        status=ApplicationStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            f"Concurrent duplicate application: user_id={student_id}, internship_id={internship.id}"
        )
        raise DuplicateApplication()

    db.refresh(application)
    logger.info(
        f"Application created: application_id={application.id}, user_id={student_id}, "
        f"internship_id={internship.id}, quota={used + 1}/{limit if limit is not None else 'unlimited'}"
    )
    return application


def find_existing_application(db: Session, student_id: int, internship_id: int) -> Optional[Application]:
    return (
        db.query(Application)
        .filter(Application.user_id == student_id, Application.internship_id == internship_id)
        .first()
    )


def _company_application(db: Session, company_id: int, application_id: int) -> Application:
    application = (
        db.query(Application)
        .join(Application.internship)
        .filter(Application.id == application_id, Internship.company_id == company_id)
        .first()
    )
    if not application:
        raise NotFound("Application not found")
    return application


def update_application_status(
    db: Session, user_id: int, application_id: int, new_status: Optional[str]
) -> Application:
    """
    Move a company's application to a new status.

    Raises:
        ValidationError: status is not one of the four values
        NotFound: application is not on one of the company's internships
        InvalidTransition: application is ACCEPTED and the new status differs
    """
    target = _parse_status(new_status)
    company = get_company_for_user(db, user_id)
    application = _company_application(db, company.id, application_id)

    previous = application.status
    if previous == ApplicationStatus.ACCEPTED:
        if target == ApplicationStatus.ACCEPTED:
            return application
        logger.warning(
            f"Rejected status change on accepted application: application_id={application.id}, "
            f"requested={target.value}"
        )
        raise InvalidTransition()

    application.status = target
    application.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(application)
    logger.info(
        f"Application status changed: application_id={application.id}, "
        f"{previous.value} -> {target.value}"
    )
    return application


def edit_cover_letter(
    db: Session, student_id: int, application_id: int, cover_letter: Optional[str]
) -> Application:
    """
    Replace the cover letter of a student's PENDING application.

    Raises:
        ValidationError: cover letter fails length rules
        NotFound: application missing or not the student's
        EditNotAllowed: application is no longer PENDING
    """
    text = validate_cover_letter(cover_letter)
    application = _student_application(db, student_id, application_id)

    if application.status != ApplicationStatus.PENDING:
        raise EditNotAllowed()

    application.cover_letter = text
    application.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(application)
    logger.info(f"Cover letter updated: application_id={application.id}, user_id={student_id}")
    return application


def _student_application(db: Session, student_id: int, application_id: int) -> Application:
    application = (
        db.query(Application)
        .filter(Application.id == application_id, Application.user_id == student_id)
        .first()
    )
    if not application:
        raise NotFound("Application not found")
    return application


def _internship_brief(internship: Internship) -> Dict:
    company = internship.company
    return {
        "id": internship.id,
        "title": internship.title,
        "location": internship.location,
        "type": internship.type.value,
        "stipend": internship.stipend,
        "duration": internship.duration,
        "deadline": internship.deadline,
        "isActive": internship.is_active,
        "company": {
            "id": company.id,
            "name": company.name,
            "logoUrl": company.logo_url,
        },
    }


def format_application(application: Application) -> Dict:
    return {
        "id": application.id,
        "status": application.status.value,
        "coverLetter": application.cover_letter,
        "createdAt": application.created_at,
        "updatedAt": application.updated_at,
        "internship": _internship_brief(application.internship),
    }


def format_company_application(application: Application) -> Dict:
    student = application.user
    return {
        "id": application.id,
        "status": application.status.value,
        "coverLetter": application.cover_letter,
        "createdAt": application.created_at,
        "updatedAt": application.updated_at,
        "student": {"id": student.id, "name": student.name, "email": student.email},
        "internship": {
            "id": application.internship.id,
            "title": application.internship.title,
            "campaignId": application.internship.campaign_id,
        },
    }


def list_student_applications(
    db: Session,
    student_id: int,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> Dict:
    """The student's applications, newest first by default, with a status summary."""
    base = db.query(Application).filter(Application.user_id == student_id)

    query = base
    if status:
        query = query.filter(Application.status == _parse_status(status))

    column = STUDENT_SORT_COLUMNS.get(sort_by, Application.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()
    applications, total = paginate(query.order_by(ordering, Application.id.desc()), page, limit)

    return {
        "applications": [format_application(application) for application in applications],
        "pagination": pagination_payload(page, limit, total, "totalApplications"),
        "summary": status_summary(base),
    }


def get_student_application(db: Session, student_id: int, application_id: int) -> Dict:
    application = _student_application(db, student_id, application_id)
    payload = format_application(application)
    internship = application.internship
    payload["internship"]["description"] = internship.description
    payload["internship"]["skills"] = [skill.name for skill in internship.skills]
    payload["canEdit"] = application.status == ApplicationStatus.PENDING
    return payload


def get_company_application(db: Session, user_id: int, application_id: int) -> Dict:
    company = get_company_for_user(db, user_id)
    application = _company_application(db, company.id, application_id)
    return format_company_application(application)


def list_campaign_applications(
    db: Session,
    user_id: int,
    campaign_id: int,
    status: Optional[str] = None,
    internship_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> Dict:
    """
    Applications received under one of the company's campaigns.

    The summary always covers the whole campaign, regardless of filters.

    Raises:
        NotFound: company or campaign missing / not owned
    """
    company = get_company_for_user(db, user_id)
    campaign: Campaign = get_owned_campaign(db, company, campaign_id)

    base = (
        db.query(Application)
        .join(Application.internship)
        .filter(Internship.campaign_id == campaign.id)
    )

    query = base
    if status:
        query = query.filter(Application.status == _parse_status(status))
    if internship_id is not None:
        query = query.filter(Application.internship_id == internship_id)

    column = COMPANY_SORT_COLUMNS.get(sort_by, Application.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()
    applications, total = paginate(query.order_by(ordering, Application.id.desc()), page, limit)

    return {
        "campaign": {"id": campaign.id, "title": campaign.title, "status": campaign.status.value},
        "applications": [format_company_application(application) for application in applications],
        "pagination": pagination_payload(page, limit, total, "totalApplications"),
        "summary": status_summary(base),
    }
