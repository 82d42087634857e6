"""
Customer (form submission) schemas.
"""
import uuid
from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel

from leadcapture.schemas.lead import LeadResponse


class SubmissionCreate(BaseModel):
    """Public form submission."""
    form_id: uuid.UUID
    responses: Dict[str, Any]

    class Config:
        json_schema_extra = {
            "example": {
                "form_id": "2b1f6c1e-7f0a-4c43-9a55-0d3a3b0c9f11",
                "responses": {
                    "Name": "John",
                    "Email": "john@example.com",
                    "Budget": "Over $50k, need this ASAP"
                }
            }
        }


class SubmissionResponse(BaseModel):
    """Returned as soon as the submission is stored."""
    message: str
    customer_id: uuid.UUID
    status: str = "scheduled"


class CustomerResponse(BaseModel):
    """Customer response."""
    id: uuid.UUID
    form_id: uuid.UUID
    owner_id: uuid.UUID
    responses: dict
    email: Optional[str]
    name: Optional[str]
    phone: Optional[str]
    submitted_at: datetime
    processed: bool
    processing_error: Optional[str]

    class Config:
        from_attributes = True


class CustomerDetailResponse(BaseModel):
    """Customer with its lead, if classified."""
    customer: CustomerResponse
    lead: Optional[LeadResponse] = None
