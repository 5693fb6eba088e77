"""
Student plans, subscriptions and subscription payments.
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Enum, ForeignKey, JSON, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.db.models.enums import PlanCycle, SubscriptionStatus, PaymentStatus


class StudentPlan(Base):
    __tablename__ = "student_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    price = Column(Float, nullable=False)
    billing_cycle = Column(Enum(PlanCycle, name="plan_cycle"), default=PlanCycle.MONTHLY, nullable=False)
    features = Column(JSON, default=list, nullable=False)
    max_applications_per_month = Column(Integer, nullable=True)  # None = unlimited
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    subscriptions = relationship("StudentSubscription", back_populates="plan")

    def __repr__(self):
        return f"<StudentPlan(id={self.id}, name='{self.name}', cap={self.max_applications_per_month})>"


class StudentSubscription(Base):
    __tablename__ = "student_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("student_plans.id"), nullable=False)

    status = Column(
        Enum(SubscriptionStatus, name="subscription_status"),
        default=SubscriptionStatus.ACTIVE,
        nullable=False,
    )
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ends_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="subscriptions")
    plan = relationship("StudentPlan", back_populates="subscriptions")
    payment = relationship(
        "SubscriptionPayment", back_populates="subscription", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint('user_id', 'plan_id', name='uq_subscription_user_plan'),
        Index('idx_subscription_user_status', 'user_id', 'status', 'ends_at'),
    )

    def is_current(self, now: datetime = None) -> bool:
        """Active means status ACTIVE and an expiry still in the future."""
        now = now or datetime.utcnow()
        return self.status == SubscriptionStatus.ACTIVE and self.ends_at > now

    def __repr__(self):
        return f"<StudentSubscription(id={self.id}, user_id={self.user_id}, status={self.status})>"


class SubscriptionPayment(Base):
    __tablename__ = "subscription_payments"

    id = Column(Integer, primary_key=True, index=True)
    subscription_id = Column(
        Integer, ForeignKey("student_subscriptions.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    amount = Column(Float, nullable=False)
    payment_method = Column(String, nullable=False)
    transaction_id = Column(String, nullable=True)
    status = Column(Enum(PaymentStatus, name="payment_status"), default=PaymentStatus.PENDING, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    subscription = relationship("StudentSubscription", back_populates="payment")
