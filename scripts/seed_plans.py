"""
Seed the default student plans.
Run: python -m scripts.seed_plans

Existing plans (matched by name) are updated in place, so the script can be
re-run after changing DEFAULT_PLANS.
"""
import logging
import sys

from sqlalchemy.orm import Session

from app.db.init_db import init_db
from app.db.models.enums import PlanCycle
from app.db.models.subscription import StudentPlan
from app.db.session import SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "name": "Free",
        "price": 0.0,
        "billing_cycle": PlanCycle.FREE,
        "features": ["Browse internships", "5 applications per month"],
        "max_applications_per_month": 5,
    },
    {
        "name": "Pro Monthly",
        "price": 299.0,
        "billing_cycle": PlanCycle.MONTHLY,
        "features": ["Browse internships", "50 applications per month", "Application tracking"],
        "max_applications_per_month": 50,
    },
    {
        "name": "Pro Yearly",
        "price": 2999.0,
        "billing_cycle": PlanCycle.YEARLY,
        "features": ["Browse internships", "Unlimited applications", "Application tracking"],
        "max_applications_per_month": None,
    },
]


def seed_plans(db: Session, plans=None) -> int:
    """Create or update plans; returns how many were created."""
    created = 0
    for entry in plans or DEFAULT_PLANS:
        plan = db.query(StudentPlan).filter(StudentPlan.name == entry["name"]).first()
        if plan:
            logger.info(f"Updating plan: {entry['name']}")
        else:
            logger.info(f"Creating plan: {entry['name']}")
            plan = StudentPlan(name=entry["name"])
            db.add(plan)
            created += 1
        plan.price = entry["price"]
        plan.billing_cycle = entry["billing_cycle"]
        plan.features = list(entry["features"])
        plan.max_applications_per_month = entry["max_applications_per_month"]
        plan.is_active = True
    db.commit()
    return created


if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        count = seed_plans(db)
        print(f"\n[SUCCESS] Plans seeded ({count} created)")
    except Exception as e:
        db.rollback()
        logger.error(f"Seeding plans failed: {e}", exc_info=True)
        print("\n[ERROR] Failed to seed plans")
        sys.exit(1)
    finally:
        db.close()
