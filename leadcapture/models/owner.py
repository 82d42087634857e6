"""
Owner model - the business that owns forms and receives leads.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from leadcapture.models.columns import TZDateTime, utcnow


class Owner(SQLModel, table=True):
    """
    Business owner profile.
    Read-only to the submission pipeline; feeds prompt context and email templates.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Business profile
    business_name: str = Field(index=True)
    business_description: Optional[str] = None
    industry: Optional[str] = None

    # Contact
    email: Optional[str] = Field(default=None, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
