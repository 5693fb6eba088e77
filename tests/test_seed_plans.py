"""
Tests for the default plan seeding script.
"""
from app.db.models.subscription import StudentPlan
from scripts.seed_plans import DEFAULT_PLANS, seed_plans


def test_seed_creates_default_plans(db):
    assert seed_plans(db) == len(DEFAULT_PLANS)

    plans = {p.name: p for p in db.query(StudentPlan).all()}
    assert set(plans) == {"Free", "Pro Monthly", "Pro Yearly"}
    assert plans["Pro Yearly"].max_applications_per_month is None
    assert all(p.is_active for p in plans.values())


def test_seed_is_idempotent_and_updates(db, make_plan):
    """Test re-running updates existing plans by name instead of duplicating."""
    make_plan(name="Free", cap=1, is_active=False)

    created = seed_plans(db)

    assert created == len(DEFAULT_PLANS) - 1
    free = db.query(StudentPlan).filter(StudentPlan.name == "Free").one()
    assert free.max_applications_per_month == 5
    assert free.is_active
    assert seed_plans(db) == 0
    assert db.query(StudentPlan).count() == len(DEFAULT_PLANS)
