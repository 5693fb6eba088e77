"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from app.db.models.enums import (
    UserRole,
    CampaignStatus,
    PaymentStatus,
    InternshipType,
    ApplicationStatus,
    SubscriptionStatus,
    PlanCycle,
)
from app.db.models.company import Company
from app.db.models.user import User
from app.db.models.campaign import Campaign, CampaignPayment
from app.db.models.internship import Internship, Skill, Tag
from app.db.models.application import Application
from app.db.models.subscription import StudentPlan, StudentSubscription, SubscriptionPayment

# Explicitly export all models for clarity
__all__ = [
    "UserRole",
    "CampaignStatus",
    "PaymentStatus",
    "InternshipType",
    "ApplicationStatus",
    "SubscriptionStatus",
    "PlanCycle",
    "Company",
    "User",
    "Campaign",
    "CampaignPayment",
    "Internship",
    "Skill",
    "Tag",
    "Application",
    "StudentPlan",
    "StudentSubscription",
    "SubscriptionPayment",
]
