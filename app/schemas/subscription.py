"""
Pydantic schemas for student plans and subscriptions.
"""
from typing import Optional
from pydantic import BaseModel, Field


class SubscribeRequest(BaseModel):
    """Request schema for subscribing to a student plan."""
    plan_id: int = Field(..., alias="planId")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    transaction_id: Optional[str] = Field(None, alias="transactionId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "planId": 1,
                "paymentMethod": "card",
                "transactionId": "txn_456"
            }
        }
