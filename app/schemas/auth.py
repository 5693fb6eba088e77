"""
Pydantic schemas for signup and login endpoints.

Field-level rules (email format, password length, website URL) are enforced
in app.services.auth_service so they surface as the standard 400 envelope.
"""
from typing import Optional
from pydantic import BaseModel, Field


class StudentSignupRequest(BaseModel):
    """Request schema for student signup."""
    name: Optional[str] = Field(None, description="Student's full name")
    email: Optional[str] = Field(None, description="Student's email address")
    password: Optional[str] = Field(None, description="Password (min 6 characters)")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Asha Patel",
                "email": "asha@example.com",
                "password": "SecurePass123"
            }
        }


class CompanySignupRequest(BaseModel):
    """Request schema for company signup."""
    name: Optional[str] = Field(None, description="Recruiter's full name")
    email: Optional[str] = Field(None, description="Recruiter's email address")
    password: Optional[str] = Field(None, description="Password (min 6 characters)")
    company_name: Optional[str] = Field(None, alias="companyName")
    company_website: Optional[str] = Field(None, alias="companyWebsite")
    company_description: Optional[str] = Field(None, alias="companyDescription")
    company_logo: Optional[str] = Field(None, alias="companyLogo")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "Dana Reyes",
                "email": "dana@acme.io",
                "password": "SecurePass123",
                "companyName": "Acme",
                "companyWebsite": "https://acme.io"
            }
        }


class LoginRequest(BaseModel):
    """Request schema for login (both roles)."""
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Password")
