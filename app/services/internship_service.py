"""
Internship catalogue: posting under a campaign and student browsing.

An internship is visible to students only when all three hold:
is_active, deadline not passed, parent campaign ACTIVE.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Query, Session

from app.core.clock import to_utc_naive
from app.core.errors import CampaignInactive, Conflict, NotFound, ValidationError
from app.db.models.application import Application
from app.db.models.campaign import Campaign
from app.db.models.company import Company
from app.db.models.enums import CampaignStatus, InternshipType
from app.db.models.internship import Internship, Skill, Tag
from app.schemas.internship import InternshipCreateRequest, InternshipFilters
from app.services.campaign_service import get_company_for_user, get_owned_campaign
from app.services.listing import paginate, pagination_payload

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "postedAt": Internship.posted_at,
    "deadline": Internship.deadline,
    "stipend": Internship.stipend,
}

SIMILAR_LIMIT = 5


def visibility_conditions(now: Optional[datetime] = None) -> list:
    """Filter conditions for student-visible internships (requires a join on Campaign)."""
    now = now or datetime.utcnow()
    return [
        Internship.is_active.is_(True),
        Internship.deadline >= now,
        Campaign.status == CampaignStatus.ACTIVE,
    ]


def visible_internships(db: Session, now: Optional[datetime] = None) -> Query:
    return (
        db.query(Internship)
        .join(Internship.campaign)
        .join(Internship.company)
        .filter(*visibility_conditions(now))
    )


def _get_or_create_labels(db: Session, model, names: Iterable[str]) -> list:
    labels = []
    seen = set()
    for raw in names:
        name = raw.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        label = db.query(model).filter(func.lower(model.name) == name.lower()).first()
        if not label:
            label = model(name=name)
            db.add(label)
        labels.append(label)
    return labels


def post_internship(
    db: Session, user_id: int, campaign_id: int, data: InternshipCreateRequest
) -> Internship:
    """
    Post an internship under one of the company's campaigns.

    Raises:
        NotFound: company or campaign missing / not owned
        CampaignInactive: campaign not ACTIVE or already ended
        Conflict: campaign already holds max_internships postings
        ValidationError: deadline not in the future
    """
    company = get_company_for_user(db, user_id)
    campaign = get_owned_campaign(db, company, campaign_id)
    now = datetime.utcnow()

    if campaign.status != CampaignStatus.ACTIVE or campaign.end_date <= now:
        raise CampaignInactive("Internships can only be posted under an active campaign")

    current = db.query(Internship).filter(Internship.campaign_id == campaign.id).count()
    if current >= campaign.max_internships:
        raise Conflict(f"Campaign has reached its limit of {campaign.max_internships} internships")

    deadline = to_utc_naive(data.deadline)
    if deadline <= now:
        raise ValidationError("Deadline must be in the future")

    try:
        internship = Internship(
            company_id=company.id,
            campaign_id=campaign.id,
            title=data.title,
            description=data.description,
            location=data.location,
            type=data.type,
            stipend=data.stipend,
            duration=data.duration,
            posted_at=now,
            deadline=deadline,
            is_active=True,
        )
        internship.skills = _get_or_create_labels(db, Skill, data.skills)
        internship.tags = _get_or_create_labels(db, Tag, data.tags)
        db.add(internship)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(internship)
    logger.info(
        f"Internship posted: internship_id={internship.id}, campaign_id={campaign.id}, "
        f"company_id={company.id}"
    )
    return internship


def _apply_filters(query: Query, filters: InternshipFilters) -> Query:
    if filters.type:
        query = query.filter(Internship.type == filters.type)

    if filters.location:
        query = query.filter(Internship.location.ilike(f"%{filters.location}%"))

    if filters.min_stipend is not None:
        query = query.filter(Internship.stipend >= filters.min_stipend)
    if filters.max_stipend is not None:
        query = query.filter(Internship.stipend <= filters.max_stipend)

    if filters.skills:
        wanted = [name.lower() for name in filters.skills]
        query = query.filter(Internship.skills.any(func.lower(Skill.name).in_(wanted)))

    if filters.tags:
        wanted = [name.lower() for name in filters.tags]
        query = query.filter(Internship.tags.any(func.lower(Tag.name).in_(wanted)))

    if filters.search:
        term = f"%{filters.search}%"
        query = query.filter(
            or_(
                Internship.title.ilike(term),
                Internship.description.ilike(term),
                Company.name.ilike(term),
            )
        )
    return query


def _application_counts(db: Session, internship_ids: List[int]) -> Dict[int, int]:
    if not internship_ids:
        return {}
    return dict(
        db.query(Application.internship_id, func.count(Application.id))
        .filter(Application.internship_id.in_(internship_ids))
        .group_by(Application.internship_id)
        .all()
    )


def _own_applications(db: Session, student_id: int, internship_ids: List[int]) -> Dict[int, Application]:
    if not internship_ids:
        return {}
    rows = (
        db.query(Application)
        .filter(Application.user_id == student_id, Application.internship_id.in_(internship_ids))
        .all()
    )
    return {row.internship_id: row for row in rows}


def _labels(items) -> List[Dict]:
    return [{"id": item.id, "name": item.name} for item in items]


def _own_application_payload(application: Optional[Application], detailed: bool = False) -> Optional[Dict]:
    if not application:
        return None
    payload = {
        "id": application.id,
        "status": application.status.value,
        "createdAt": application.created_at,
    }
    if detailed:
        payload["coverLetter"] = application.cover_letter
        payload["updatedAt"] = application.updated_at
    return payload


def format_internship_card(
    internship: Internship, application_count: int, own_application: Optional[Application]
) -> Dict:
    company = internship.company
    return {
        "id": internship.id,
        "title": internship.title,
        "description": internship.description,
        "location": internship.location,
        "type": internship.type.value,
        "stipend": internship.stipend,
        "duration": internship.duration,
        "postedAt": internship.posted_at,
        "deadline": internship.deadline,
        "company": {
            "id": company.id,
            "name": company.name,
            "logoUrl": company.logo_url,
            "website": company.website,
        },
        "campaign": {
            "id": internship.campaign.id,
            "title": internship.campaign.title,
            "endDate": internship.campaign.end_date,
        },
        "skills": _labels(internship.skills),
        "tags": _labels(internship.tags),
        "applicationCount": application_count,
        "userApplication": _own_application_payload(own_application),
        "hasApplied": own_application is not None,
    }


def browse_internships(db: Session, student_id: int, filters: InternshipFilters) -> Dict:
    """
    Filtered, sorted, paginated list of visible internships.

    Also returns the filter options (skills, tags, locations) available among
    the internships matching the current filters.
    """
    query = _apply_filters(visible_internships(db), filters)

    sort_column = SORT_COLUMNS.get(filters.sort_by, Internship.posted_at)
    ordering = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()
    page_query = query.order_by(ordering, Internship.id.desc())

    internships, total = paginate(page_query, filters.page, filters.limit)

    ids = [internship.id for internship in internships]
    counts = _application_counts(db, ids)
    own = _own_applications(db, student_id, ids)

    matching_ids = query.with_entities(Internship.id).subquery()
    skill_options = (
        db.query(Skill)
        .filter(Skill.internships.any(Internship.id.in_(select(matching_ids.c.id))))
        .order_by(Skill.name.asc())
        .all()
    )
    tag_options = (
        db.query(Tag)
        .filter(Tag.internships.any(Internship.id.in_(select(matching_ids.c.id))))
        .order_by(Tag.name.asc())
        .all()
    )
    locations = (
        query.with_entities(Internship.location)
        .distinct()
        .order_by(Internship.location.asc())
        .all()
    )

    logger.debug(f"Internships browsed: student_id={student_id}, total={total}, page={filters.page}")

    return {
        "internships": [
            format_internship_card(internship, counts.get(internship.id, 0), own.get(internship.id))
            for internship in internships
        ],
        "pagination": pagination_payload(filters.page, filters.limit, total, "totalInternships"),
        "filters": {
            "skills": _labels(skill_options),
            "tags": _labels(tag_options),
            "locations": [location for (location,) in locations],
            "types": [t.value for t in InternshipType],
        },
    }


def get_internship_detail(db: Session, student_id: int, internship_id: int) -> Dict:
    """
    Full detail of one open internship plus up to five similar ones.

    Raises:
        NotFound: missing, deactivated or past its deadline
        CampaignInactive: parent campaign not ACTIVE
    """
    now = datetime.utcnow()
    internship = (
        db.query(Internship)
        .filter(
            Internship.id == internship_id,
            Internship.is_active.is_(True),
            Internship.deadline >= now,
        )
        .first()
    )
    if not internship:
        raise NotFound("Internship not found or no longer available")

    if internship.campaign.status != CampaignStatus.ACTIVE:
        raise CampaignInactive("This internship is no longer accepting applications")

    skill_ids = [skill.id for skill in internship.skills]
    similar = (
        visible_internships(db, now)
        .filter(
            Internship.id != internship.id,
            or_(
                Internship.company_id == internship.company_id,
                Internship.skills.any(Skill.id.in_(skill_ids)),
            ),
        )
        .order_by(Internship.posted_at.desc(), Internship.id.desc())
        .limit(SIMILAR_LIMIT)
        .all()
    )

    own = _own_applications(db, student_id, [internship.id]).get(internship.id)
    count = _application_counts(db, [internship.id]).get(internship.id, 0)
    company = internship.company
    campaign = internship.campaign

    return {
        "id": internship.id,
        "title": internship.title,
        "description": internship.description,
        "location": internship.location,
        "type": internship.type.value,
        "stipend": internship.stipend,
        "duration": internship.duration,
        "postedAt": internship.posted_at,
        "deadline": internship.deadline,
        "company": {
            "id": company.id,
            "name": company.name,
            "logoUrl": company.logo_url,
            "website": company.website,
            "description": company.description,
        },
        "campaign": {
            "id": campaign.id,
            "title": campaign.title,
            "description": campaign.description,
            "endDate": campaign.end_date,
            "status": campaign.status.value,
        },
        "skills": _labels(internship.skills),
        "tags": _labels(internship.tags),
        "applicationCount": count,
        "userApplication": _own_application_payload(own, detailed=True),
        "hasApplied": own is not None,
        "canApply": own is None and now < internship.deadline,
        "similarInternships": [
            {
                "id": other.id,
                "title": other.title,
                "company": {"name": other.company.name, "logoUrl": other.company.logo_url},
                "location": other.location,
                "type": other.type.value,
                "stipend": other.stipend,
                "deadline": other.deadline,
                "skills": [skill.name for skill in other.skills],
            }
            for other in similar
        ],
    }
