"""
Lead model - classification and engagement record for one submission.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from leadcapture.models.columns import JSONVariant, TZDateTime, utcnow


class Lead(SQLModel, table=True):
    """
    Lead derived from exactly one Customer.
    The unique constraint on customer_id is what deduplicates concurrent pipeline runs.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    customer_id: uuid.UUID = Field(foreign_key="customer.id", unique=True, index=True)
    owner_id: uuid.UUID = Field(foreign_key="owner.id", index=True)
    form_id: uuid.UUID = Field(foreign_key="form.id", index=True)

    # Classification
    classification: str = Field(index=True)  # hot, normal, cold
    confidence_score: float = Field(ge=0, le=1)
    reasoning: str

    # Insights extracted by the oracle
    insights: dict = Field(default={}, sa_column=Column(JSONVariant))
    # Example: {"budget": "high", "timeline": "immediate", "decision_maker": true,
    #           "pain_points": [], "interests": [], "urgency": "immediate"}
    key_factors: List[str] = Field(default=[], sa_column=Column(JSONVariant))

    # Auto-response email
    email_sent: bool = Field(default=False)
    email_sent_at: Optional[datetime] = Field(default=None, sa_type=TZDateTime)
    email_subject: Optional[str] = None
    email_body: Optional[str] = None
    email_message_id: Optional[str] = None
    email_error: Optional[str] = None

    # Follow-up tracking (managed outside the pipeline)
    follow_up_status: str = Field(default="pending", index=True)  # pending, contacted, in-progress, converted, lost

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
