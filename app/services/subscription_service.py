"""
Student subscription lifecycle.

A subscription is "currently active" when its status is ACTIVE and ends_at is
in the future. Students may hold several at once (one per plan); the most
recently created active one is authoritative.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationError
from app.db.models.enums import PaymentStatus, PlanCycle, SubscriptionStatus
from app.db.models.subscription import StudentPlan, StudentSubscription, SubscriptionPayment

logger = logging.getLogger(__name__)

PLAN_DURATIONS: Dict[PlanCycle, timedelta] = {
    PlanCycle.MONTHLY: timedelta(days=30),
    PlanCycle.FREE: timedelta(days=30),
    PlanCycle.YEARLY: timedelta(days=365),
}


def get_active_subscription(
    db: Session, user_id: int, now: Optional[datetime] = None
) -> Optional[StudentSubscription]:
    """Most recently created currently-active subscription, or None."""
    now = now or datetime.utcnow()
    return (
        db.query(StudentSubscription)
        .filter(
            StudentSubscription.user_id == user_id,
            StudentSubscription.status == SubscriptionStatus.ACTIVE,
            StudentSubscription.ends_at > now,
        )
        .order_by(StudentSubscription.created_at.desc(), StudentSubscription.id.desc())
        .first()
    )


def has_active_subscription(db: Session, user_id: int) -> bool:
    return get_active_subscription(db, user_id) is not None


def list_plans(db: Session) -> List[StudentPlan]:
    return (
        db.query(StudentPlan)
        .filter(StudentPlan.is_active.is_(True))
        .order_by(StudentPlan.price.asc(), StudentPlan.id.asc())
        .all()
    )


def list_subscriptions(db: Session, user_id: int) -> List[StudentSubscription]:
    return (
        db.query(StudentSubscription)
        .filter(StudentSubscription.user_id == user_id)
        .order_by(StudentSubscription.created_at.desc(), StudentSubscription.id.desc())
        .all()
    )


def subscribe(
    db: Session,
    user_id: int,
    plan_id: int,
    payment_method: Optional[str],
    transaction_id: Optional[str] = None,
) -> StudentSubscription:
    """
    Subscribe a student to a plan.

    The subscription and its payment are written in one transaction. An
    expired or canceled subscription to the same plan is renewed in place.

    Raises:
        NotFound: plan missing or retired
        ValidationError: paid plan without a payment method
        Conflict: already actively subscribed to this plan
    """
    plan = db.query(StudentPlan).filter(StudentPlan.id == plan_id).first()
    if not plan or not plan.is_active:
        raise NotFound("Plan not found")

    if not payment_method:
        if plan.price > 0:
            raise ValidationError("Payment method is required")
        payment_method = "free"

    now = datetime.utcnow()
    existing = (
        db.query(StudentSubscription)
        .filter(StudentSubscription.user_id == user_id, StudentSubscription.plan_id == plan.id)
        .first()
    )
    if existing and existing.is_current(now):
        raise Conflict("You already have an active subscription to this plan")

    paid = bool(transaction_id)
    try:
        if existing:
            subscription = existing
            subscription.status = SubscriptionStatus.ACTIVE
            subscription.created_at = now
            subscription.started_at = now
            subscription.ends_at = now + PLAN_DURATIONS[plan.billing_cycle]
        else:
            subscription = StudentSubscription(
                user_id=user_id,
                plan_id=plan.id,
                status=SubscriptionStatus.ACTIVE,
                started_at=now,
                ends_at=now + PLAN_DURATIONS[plan.billing_cycle],
                created_at=now,
            )
            db.add(subscription)
            db.flush()

        payment = subscription.payment or SubscriptionPayment(subscription_id=subscription.id)
        payment.amount = plan.price
        payment.payment_method = payment_method
        payment.transaction_id = transaction_id
        payment.status = PaymentStatus.COMPLETED if paid else PaymentStatus.PENDING
        payment.paid_at = now if paid else None
        subscription.payment = payment

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(subscription)
    logger.info(
        f"Subscription started: user_id={user_id}, plan={plan.name}, "
        f"subscription_id={subscription.id}, payment={subscription.payment.status.value}"
    )
    return subscription


def cancel_subscription(db: Session, user_id: int, subscription_id: int) -> StudentSubscription:
    subscription = (
        db.query(StudentSubscription)
        .filter(StudentSubscription.id == subscription_id, StudentSubscription.user_id == user_id)
        .first()
    )
    if not subscription:
        raise NotFound("Subscription not found")

    subscription.status = SubscriptionStatus.CANCELED
    db.commit()
    db.refresh(subscription)
    logger.info(f"Subscription canceled: user_id={user_id}, subscription_id={subscription_id}")
    return subscription


def expire_lapsed_subscriptions(db: Session, now: Optional[datetime] = None) -> int:
    """Mark ACTIVE subscriptions whose ends_at has passed as EXPIRED."""
    now = now or datetime.utcnow()
    count = (
        db.query(StudentSubscription)
        .filter(
            StudentSubscription.status == SubscriptionStatus.ACTIVE,
            StudentSubscription.ends_at <= now,
        )
        .update({StudentSubscription.status: SubscriptionStatus.EXPIRED}, synchronize_session=False)
    )
    db.commit()
    if count:
        logger.info(f"Expired {count} lapsed subscription(s)")
    return count


def format_plan(plan: StudentPlan) -> Dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "price": plan.price,
        "billingCycle": plan.billing_cycle.value,
        "features": plan.features or [],
        "maxApplicationsPerMonth": plan.max_applications_per_month,
    }


def format_subscription(subscription: StudentSubscription) -> Dict:
    payment = subscription.payment
    return {
        "id": subscription.id,
        "status": subscription.status.value,
        "startedAt": subscription.started_at,
        "endsAt": subscription.ends_at,
        "isActive": subscription.is_current(),
        "plan": format_plan(subscription.plan),
        "payment": {
            "status": payment.status.value if payment else None,
            "amount": payment.amount if payment else None,
            "paidAt": payment.paid_at if payment else None,
            "paymentMethod": payment.payment_method if payment else None,
        },
    }
