"""
Form model - lead capture form definition.
Field weights, classification criteria and email settings live in JSON columns.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from leadcapture.models.columns import JSONVariant, TZDateTime, utcnow
from leadcapture.schemas.form import FormConfig


class Form(SQLModel, table=True):
    """
    Lead capture form owned by a business.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: uuid.UUID = Field(foreign_key="owner.id", index=True)

    # Basic info
    title: str
    description: Optional[str] = None

    # Ordered field definitions
    fields: List[dict] = Field(default=[], sa_column=Column(JSONVariant))
    # Example: [{"label": "Budget", "field_type": "text", "classification_weight": "high", "order": 1}]

    # Indicators handed to the classifier
    classification_criteria: dict = Field(default={}, sa_column=Column(JSONVariant))
    # Example: {"hot_indicators": ["Budget over $50k"], "normal_indicators": [], "cold_indicators": []}

    # Auto-response settings
    email_settings: dict = Field(default={}, sa_column=Column(JSONVariant))
    # Example: {"send_auto_response": true, "hot_template": "Hi {{customerName}}..."}

    # Status
    is_active: bool = Field(default=True, index=True)
    submission_count: int = Field(default=0)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=TZDateTime)

    def config(self) -> FormConfig:
        """Typed view of the JSON configuration."""
        return FormConfig.model_validate({
            "fields": self.fields or [],
            "classification_criteria": self.classification_criteria or {},
            "email_settings": self.email_settings or {},
        })
