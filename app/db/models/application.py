from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.db.models.enums import ApplicationStatus


class Application(Base):
    """
    A student's application to one internship.

    At most one row per (internship, user); the unique constraint is what
    serializes concurrent submissions.
    """
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    internship_id = Column(Integer, ForeignKey("internships.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    cover_letter = Column(Text, nullable=False)
    status = Column(
        Enum(ApplicationStatus, name="application_status"),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    internship = relationship("Internship", back_populates="applications")
    user = relationship("User", back_populates="applications")

    __table_args__ = (
        UniqueConstraint('internship_id', 'user_id', name='uq_application_internship_user'),
        Index('idx_application_user_created', 'user_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Application(id={self.id}, internship_id={self.internship_id}, status={self.status})>"
