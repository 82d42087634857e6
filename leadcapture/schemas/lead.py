"""
Lead schemas.
"""
import uuid
from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel


class LeadResponse(BaseModel):
    """Lead response."""
    id: uuid.UUID
    customer_id: uuid.UUID
    owner_id: uuid.UUID
    form_id: uuid.UUID
    classification: str
    confidence_score: float
    reasoning: str
    insights: dict
    key_factors: List[str]
    email_sent: bool
    email_sent_at: Optional[datetime]
    email_subject: Optional[str]
    email_body: Optional[str]
    email_error: Optional[str]
    follow_up_status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LeadFilter(BaseModel):
    """Lead filtering options."""
    owner_id: Optional[uuid.UUID] = None
    form_id: Optional[uuid.UUID] = None
    classification: Optional[str] = None
    follow_up_status: Optional[str] = None
    email_sent: Optional[bool] = None


class ClassificationStats(BaseModel):
    count: int = 0
    avg_confidence: float = 0.0


class LeadStats(BaseModel):
    """Lead statistics per classification."""
    total: int
    by_classification: Dict[str, ClassificationStats]
