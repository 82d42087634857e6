"""
Form configuration schemas.
Typed view of the JSON columns on the Form table.
"""
from typing import Optional, List, Literal
from pydantic import BaseModel

Weight = Literal["high", "medium", "low", "none"]


class FormField(BaseModel):
    """Single form field."""
    label: str
    field_type: str = "text"  # text, email, phone, number, textarea, select, radio, checkbox, date
    classification_weight: Weight = "medium"
    required: bool = False
    order: int = 0
    options: List[str] = []


class ClassificationCriteria(BaseModel):
    """Free-text indicators per band. Empty means use the built-in defaults."""
    hot_indicators: List[str] = []
    normal_indicators: List[str] = []
    cold_indicators: List[str] = []


class EmailSettings(BaseModel):
    """Auto-response configuration."""
    send_auto_response: bool = True
    hot_template: Optional[str] = None
    normal_template: Optional[str] = None
    cold_template: Optional[str] = None

    def template_for(self, classification: str) -> Optional[str]:
        """Configured template for a label, or None when unset or blank."""
        template = getattr(self, f"{classification}_template", None)
        if template and template.strip():
            return template
        return None


class FormConfig(BaseModel):
    """Everything the pipeline reads from a form."""
    fields: List[FormField] = []
    classification_criteria: ClassificationCriteria = ClassificationCriteria()
    email_settings: EmailSettings = EmailSettings()

    class Config:
        json_schema_extra = {
            "example": {
                "fields": [
                    {"label": "Name", "field_type": "text", "classification_weight": "none"},
                    {"label": "Email", "field_type": "email", "classification_weight": "none"},
                    {"label": "Budget", "field_type": "text", "classification_weight": "high"}
                ],
                "classification_criteria": {"hot_indicators": ["Budget over $50k"]},
                "email_settings": {"send_auto_response": True}
            }
        }
