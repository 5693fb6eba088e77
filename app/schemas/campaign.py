"""
Pydantic schemas for campaign endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class CampaignLaunchRequest(BaseModel):
    """Request schema for launching a campaign (campaign + payment)."""
    title: Optional[str] = None
    description: Optional[str] = None
    budget: Optional[float] = None
    end_date: Optional[datetime] = Field(None, alias="endDate")
    max_internships: Optional[int] = Field(None, alias="maxInternships")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    transaction_id: Optional[str] = Field(None, alias="transactionId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "Summer 2026 Engineering Interns",
                "budget": 1500,
                "endDate": "2026-08-31T00:00:00Z",
                "maxInternships": 5,
                "paymentMethod": "card",
                "transactionId": "txn_123"
            }
        }


class CampaignUpdateRequest(BaseModel):
    """Partial update of a campaign; omitted fields are left untouched."""
    title: Optional[str] = None
    description: Optional[str] = None
    end_date: Optional[datetime] = Field(None, alias="endDate")
    status: Optional[str] = Field(None, description="ACTIVE, PAUSED or COMPLETED")

    class Config:
        populate_by_name = True
