"""
Monthly application quota.

Plans may cap how many applications a student submits per calendar month
(StudentPlan.max_applications_per_month, None = unlimited). Usage is the
number of the student's applications created since the first instant of the
current UTC month, whatever their status.
"""
import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Query, Session

from app.core.clock import month_start
from app.core.errors import QuotaExceeded, SubscriptionRequired
from app.db.models.application import Application
from app.db.models.subscription import StudentPlan
from app.db.models.user import User
from app.services.subscription_service import get_active_subscription

logger = logging.getLogger(__name__)


def get_month_key(date: Optional[datetime] = None) -> str:
    """Month key in YYYY-MM format."""
    return (date or datetime.utcnow()).strftime("%Y-%m")


def get_month_usage(db: Session, user_id: int, now: Optional[datetime] = None) -> int:
    """Applications created by the student in the current calendar month."""
    since = month_start(now)
    return (
        db.query(Application)
        .filter(Application.user_id == user_id, Application.created_at >= since)
        .count()
    )


def student_lock_query(db: Session, user_id: int) -> Query:
    """SELECT ... FOR UPDATE on the student's row; SQLite renders it without the lock clause."""
    return db.query(User).filter(User.id == user_id).with_for_update()


def check_application_quota(
    db: Session, user_id: int, plan: StudentPlan, now: Optional[datetime] = None
) -> Tuple[int, Optional[int]]:
    """
    Check that one more application fits within the plan's monthly cap.

    Capped plans lock the student row first, so concurrent applies are
    counted one at a time until the caller commits the new application.

    Returns:
        Tuple of (used, limit); limit is None for unlimited plans.

    Raises:
        QuotaExceeded: used >= limit
    """
    limit = plan.max_applications_per_month
    if limit is None:
        return 0, None

    student_lock_query(db, user_id).first()
    used = get_month_usage(db, user_id, now)
    if used >= limit:
        logger.warning(
            f"Quota exceeded: user_id={user_id}, plan={plan.name}, limit={limit}, used={used}"
        )
        raise QuotaExceeded(plan.name, used, limit)

    return used, limit


def get_usage_for_response(db: Session, user_id: int) -> Dict:
    """
    Usage data for GET /student/usage.

    Raises:
        SubscriptionRequired: the student has no active subscription
    """
    subscription = get_active_subscription(db, user_id)
    if not subscription:
        raise SubscriptionRequired("Active subscription required")

    plan = subscription.plan
    limit = plan.max_applications_per_month
    used = get_month_usage(db, user_id)

    return {
        "plan": plan.name,
        "month": get_month_key(),
        "limit": limit,
        "used": used,
        "remaining": None if limit is None else max(0, limit - used),
        "unlimited": limit is None,
        "endsAt": subscription.ends_at,
    }
