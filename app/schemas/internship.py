"""
Pydantic schemas for internship postings and student browsing.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.enums import InternshipType


class InternshipCreateRequest(BaseModel):
    """Request schema for posting an internship under a campaign."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, max_length=255)
    type: InternshipType
    stipend: Optional[int] = Field(None, ge=0)
    duration: str = Field(..., min_length=1, max_length=100)
    deadline: datetime
    skills: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class InternshipFilters(BaseModel):
    """Browse filters; built from query parameters by the student router."""
    type: Optional[InternshipType] = None
    location: Optional[str] = None
    min_stipend: Optional[int] = None
    max_stipend: Optional[int] = None
    skills: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    search: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort_by: str = Field("postedAt", pattern="^(postedAt|deadline|stipend)$")
    sort_order: str = Field("desc", pattern="^(asc|desc)$")
