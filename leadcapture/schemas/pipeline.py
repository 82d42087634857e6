"""
Pipeline run schemas.
"""
import uuid
from enum import Enum
from typing import Optional, List
from datetime import datetime, timezone
from pydantic import BaseModel, Field

from leadcapture.schemas.email import DeliveryOutcome


class PipelineState(str, Enum):
    RECEIVED = "received"
    CLASSIFYING = "classifying"
    CLASSIFIED = "classified"
    EMAIL_SKIPPED = "email_skipped"
    EMAIL_SENDING = "email_sending"
    EMAIL_SENT = "email_sent"
    EMAIL_FAILED = "email_failed"
    COMPLETED = "completed"
    FAILED = "failed"
    DUPLICATE = "duplicate"  # lost the lead insert race; the other run owns the lead


TERMINAL_STATES = {PipelineState.COMPLETED, PipelineState.FAILED, PipelineState.DUPLICATE}


class PipelineResult(BaseModel):
    """What happened to one submission."""
    customer_id: uuid.UUID
    state: PipelineState = PipelineState.RECEIVED
    history: List[PipelineState] = Field(default_factory=lambda: [PipelineState.RECEIVED])
    lead_id: Optional[uuid.UUID] = None
    classification: Optional[str] = None
    delivery: Optional[DeliveryOutcome] = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    def advance(self, state: PipelineState) -> "PipelineResult":
        self.state = state
        self.history.append(state)
        if state in TERMINAL_STATES:
            self.finished_at = datetime.now(timezone.utc)
        return self

    def fail(self, error: str) -> "PipelineResult":
        self.error = error
        return self.advance(PipelineState.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.COMPLETED
