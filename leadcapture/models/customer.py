"""
Customer model - a single form submission from an end customer.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from leadcapture.models.columns import JSONVariant, TZDateTime, utcnow


class Customer(SQLModel, table=True):
    """
    Raw submission plus the contact fields extracted from it.
    Created once at intake; only the pipeline touches processed/processing_error.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    form_id: uuid.UUID = Field(foreign_key="form.id", index=True)
    owner_id: uuid.UUID = Field(foreign_key="owner.id", index=True)

    # Field label -> response value
    responses: dict = Field(default={}, sa_column=Column(JSONVariant))

    # Extracted contact info
    email: Optional[str] = Field(default=None, index=True)
    name: Optional[str] = None
    phone: Optional[str] = None

    # Submission metadata
    submitted_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    # Processing status
    processed: bool = Field(default=False, index=True)
    processing_error: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)

    def get_response(self, label: str) -> Optional[str]:
        """Response value for a field label."""
        value = (self.responses or {}).get(label)
        return None if value is None else str(value)
