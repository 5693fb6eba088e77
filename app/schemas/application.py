"""
Pydantic schemas for application endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field


class ApplyRequest(BaseModel):
    """Cover letter is validated by the application workflow (50-2000 chars trimmed)."""
    cover_letter: Optional[str] = Field(None, alias="coverLetter")

    class Config:
        populate_by_name = True


class CoverLetterUpdateRequest(BaseModel):
    cover_letter: Optional[str] = Field(None, alias="coverLetter")

    class Config:
        populate_by_name = True


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = Field(None, description="PENDING, SHORTLISTED, ACCEPTED or REJECTED")
