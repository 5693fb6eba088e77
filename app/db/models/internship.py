"""
Internship postings and their skill/tag labels.
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, Index, Table
)
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.db.models.enums import InternshipType


internship_skills = Table(
    "internship_skills",
    Base.metadata,
    Column("internship_id", Integer, ForeignKey("internships.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

internship_tags = Table(
    "internship_tags",
    Base.metadata,
    Column("internship_id", Integer, ForeignKey("internships.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    internships = relationship("Internship", secondary=internship_skills, back_populates="skills")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    internships = relationship("Internship", secondary=internship_tags, back_populates="tags")


class Internship(Base):
    __tablename__ = "internships"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    location = Column(String, nullable=False)
    type = Column(Enum(InternshipType, name="internship_type"), nullable=False)
    stipend = Column(Integer, nullable=True)
    duration = Column(String, nullable=False)

    posted_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    deadline = Column(DateTime, nullable=False, index=True)
    # Visibility also depends on the parent campaign's status
    is_active = Column(Boolean, default=True, nullable=False)

    company = relationship("Company", back_populates="internships")
    campaign = relationship("Campaign", back_populates="internships")
    applications = relationship("Application", back_populates="internship", cascade="all, delete-orphan")
    skills = relationship("Skill", secondary=internship_skills, back_populates="internships")
    tags = relationship("Tag", secondary=internship_tags, back_populates="internships")

    __table_args__ = (
        Index('idx_internship_active_deadline', 'is_active', 'deadline'),
    )

    def __repr__(self):
        return f"<Internship(id={self.id}, title='{self.title}', campaign_id={self.campaign_id})>"
