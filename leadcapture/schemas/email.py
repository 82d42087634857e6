"""
Email composition and delivery schemas.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class EmailContent(BaseModel):
    """Composed email."""
    subject: str
    body: str  # HTML


class DeliveryOutcome(BaseModel):
    """Result of a single delivery attempt."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


class PersonalizedDelivery(BaseModel):
    """Composed content plus how sending it went."""
    content: EmailContent
    outcome: DeliveryOutcome
