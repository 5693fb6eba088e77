"""
Shared fixtures: an in-memory SQLite database per test and small factories
for the marketplace entities.
"""
import os

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.db.base import Base
import app.db.models  # noqa: F401
from app.db.models.application import Application
from app.db.models.campaign import Campaign, CampaignPayment
from app.db.models.company import Company
from app.db.models.enums import (
    ApplicationStatus,
    CampaignStatus,
    InternshipType,
    PaymentStatus,
    PlanCycle,
    SubscriptionStatus,
    UserRole,
)
from app.db.models.internship import Internship, Skill
from app.db.models.subscription import StudentPlan, StudentSubscription
from app.db.models.user import User

# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

COVER_LETTER = (
    "I am excited to apply for this internship because it matches my "
    "coursework and the projects I have built."
)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def make_student(db):
    def _make(email="student@example.com", password="testpass123", name="Test Student"):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.STUDENT,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_company(db):
    def _make(name="Acme", email=None, password="testpass123"):
        company = Company(name=name, website="https://acme.io")
        db.add(company)
        db.flush()
        user = User(
            name=f"{name} Recruiter",
            email=email or f"hr@{name.lower()}.io",
            password_hash=hash_password(password),
            role=UserRole.COMPANY,
            company_id=company.id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_campaign(db):
    def _make(company_user, status=CampaignStatus.ACTIVE, paid=True, end_date=None, max_internships=5):
        now = datetime.utcnow()
        campaign = Campaign(
            company_id=company_user.company_id,
            title="Summer Interns",
            budget=1000.0,
            status=status,
            start_date=now,
            end_date=end_date or now + timedelta(days=60),
            max_internships=max_internships,
        )
        db.add(campaign)
        db.flush()
        db.add(CampaignPayment(
            campaign_id=campaign.id,
            amount=1000.0,
            payment_method="card",
            transaction_id="txn_1" if paid else None,
            status=PaymentStatus.COMPLETED if paid else PaymentStatus.PENDING,
            paid_at=now if paid else None,
        ))
        db.commit()
        db.refresh(campaign)
        return campaign
    return _make


@pytest.fixture
def make_internship(db):
    def _make(
        campaign,
        title="Backend Intern",
        deadline=None,
        is_active=True,
        skills=(),
        location="Bengaluru",
        type=InternshipType.REMOTE,
        stipend=10000,
        posted_at=None,
    ):
        internship = Internship(
            company_id=campaign.company_id,
            campaign_id=campaign.id,
            title=title,
            description=f"{title} working on real product features",
            location=location,
            type=type,
            stipend=stipend,
            duration="3 months",
            posted_at=posted_at or datetime.utcnow(),
            deadline=deadline or datetime.utcnow() + timedelta(days=14),
            is_active=is_active,
        )
        for name in skills:
            skill = db.query(Skill).filter(Skill.name == name).first() or Skill(name=name)
            internship.skills.append(skill)
        db.add(internship)
        db.commit()
        db.refresh(internship)
        return internship
    return _make


@pytest.fixture
def make_plan(db):
    def _make(name="Basic", cap=5, cycle=PlanCycle.MONTHLY, price=199.0, is_active=True):
        plan = StudentPlan(
            name=name,
            price=price,
            billing_cycle=cycle,
            features=["Browse internships"],
            max_applications_per_month=cap,
            is_active=is_active,
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan
    return _make


@pytest.fixture
def make_subscription(db):
    def _make(user, plan, status=SubscriptionStatus.ACTIVE, ends_at=None, created_at=None):
        now = datetime.utcnow()
        subscription = StudentSubscription(
            user_id=user.id,
            plan_id=plan.id,
            status=status,
            started_at=now,
            ends_at=ends_at or now + timedelta(days=30),
            created_at=created_at or now,
        )
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription
    return _make


@pytest.fixture
def make_application(db):
    def _make(student, internship, status=ApplicationStatus.PENDING, created_at=None):
        application = Application(
            internship_id=internship.id,
            user_id=student.id,
            cover_letter=COVER_LETTER,
            status=status,
            created_at=created_at or datetime.utcnow(),
        )
        db.add(application)
        db.commit()
        db.refresh(application)
        return application
    return _make


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def recruiter(make_company):
    """A COMPANY user belonging to the default "Acme" company."""
    return make_company()


@pytest.fixture
def client(db):
    """TestClient whose requests share the test's database session."""
    from fastapi.testclient import TestClient
    from app.db.session import get_db
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
