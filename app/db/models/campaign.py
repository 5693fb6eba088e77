"""
Campaign and CampaignPayment models.

A campaign is a company's funded container of internship postings. Each
campaign has exactly one payment record; the campaign counts as paid only
when that payment is COMPLETED.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.db.models.enums import CampaignStatus, PaymentStatus


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    budget = Column(Float, nullable=False)
    status = Column(Enum(CampaignStatus, name="campaign_status"), default=CampaignStatus.ACTIVE, nullable=False)
    start_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    end_date = Column(DateTime, nullable=False)
    max_internships = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = relationship("Company", back_populates="campaigns")
    payment = relationship(
        "CampaignPayment", back_populates="campaign", uselist=False, cascade="all, delete-orphan"
    )
    internships = relationship("Internship", back_populates="campaign", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_campaign_company_status', 'company_id', 'status'),
    )

    @property
    def is_paid(self) -> bool:
        return self.payment is not None and self.payment.status == PaymentStatus.COMPLETED

    def __repr__(self):
        return f"<Campaign(id={self.id}, title='{self.title}', status={self.status})>"


class CampaignPayment(Base):
    __tablename__ = "campaign_payments"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    amount = Column(Float, nullable=False)
    payment_method = Column(String, nullable=False)
    transaction_id = Column(String, nullable=True)
    status = Column(Enum(PaymentStatus, name="payment_status"), default=PaymentStatus.PENDING, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    campaign = relationship("Campaign", back_populates="payment")
