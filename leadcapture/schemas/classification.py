"""
Classification schemas.
"""
from enum import Enum
from typing import List
from pydantic import BaseModel


class LeadClassification(str, Enum):
    HOT = "hot"
    NORMAL = "normal"
    COLD = "cold"


class LeadInsights(BaseModel):
    """Structured extraction from a submission."""
    budget: str = "unknown"  # high, medium, low, unknown
    timeline: str = "unknown"  # immediate, short-term, long-term, unknown
    decision_maker: bool = False
    pain_points: List[str] = []
    interests: List[str] = []
    urgency: str = "unknown"  # immediate, short-term, long-term, unknown


class ClassificationResult(BaseModel):
    """Normalized classifier output."""
    classification: LeadClassification
    confidence_score: float
    reasoning: str
    insights: LeadInsights = LeadInsights()
    key_factors: List[str] = []
