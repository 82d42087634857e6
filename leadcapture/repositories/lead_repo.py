"""
Lead repository with search, stats and email outcome updates.
"""
import uuid
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from leadcapture.core.exceptions import ConflictError
from leadcapture.core.pagination import paginate_query
from leadcapture.models.columns import utcnow
from leadcapture.models.lead import Lead
from leadcapture.repositories.base import BaseRepository
from leadcapture.schemas.classification import ClassificationResult
from leadcapture.schemas.email import PersonalizedDelivery
from leadcapture.schemas.lead import LeadFilter


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    async def create(self, obj_in: dict) -> Lead:
        """
        Insert a lead.

        The unique index on customer_id is the only guard against two pipeline
        runs for the same submission. The losing insert surfaces as ConflictError.
        """
        try:
            return await super().create(obj_in)
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Lead", "customer_id", str(obj_in.get("customer_id")))

    async def create_from_classification(
        self,
        customer_id: uuid.UUID,
        owner_id: uuid.UUID,
        form_id: uuid.UUID,
        result: ClassificationResult
    ) -> Lead:
        """Persist a normalized classification as a new lead."""
        return await self.create({
            "customer_id": customer_id,
            "owner_id": owner_id,
            "form_id": form_id,
            "classification": result.classification.value,
            "confidence_score": result.confidence_score,
            "reasoning": result.reasoning,
            "insights": result.insights.model_dump(),
            "key_factors": list(result.key_factors),
        })

    async def get_by_customer(self, customer_id: uuid.UUID) -> Optional[Lead]:
        """Get the lead derived from a submission."""
        return await self.get_by_field("customer_id", customer_id)

    async def update_classification(self, lead_id: uuid.UUID, result: ClassificationResult) -> Optional[Lead]:
        """Overwrite the classification of an existing lead."""
        return await self.update(lead_id, {
            "classification": result.classification.value,
            "confidence_score": result.confidence_score,
            "reasoning": result.reasoning,
            "insights": result.insights.model_dump(),
            "key_factors": list(result.key_factors),
        })

    async def record_email(self, lead_id: uuid.UUID, delivery: PersonalizedDelivery) -> Optional[Lead]:
        """Store the auto-response content and delivery outcome."""
        lead = await self.get(lead_id)
        if not lead:
            return None

        outcome = delivery.outcome
        lead.email_subject = delivery.content.subject
        lead.email_body = delivery.content.body
        lead.email_sent = outcome.success
        lead.email_sent_at = (outcome.sent_at or utcnow()) if outcome.success else None
        lead.email_message_id = outcome.message_id
        lead.email_error = None if outcome.success else outcome.error
        lead.updated_at = utcnow()

        self.session.add(lead)
        await self.session.commit()
        await self.session.refresh(lead)
        return lead

    async def record_email_error(self, lead_id: uuid.UUID, message: str) -> Optional[Lead]:
        """Note an auto-response that could not even be composed."""
        return await self.update(lead_id, {"email_sent": False, "email_error": message})

    async def search(
        self,
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """Search leads with filtering and pagination."""
        query = select(Lead)

        if filters:
            if filters.owner_id:
                query = query.where(Lead.owner_id == filters.owner_id)
            if filters.form_id:
                query = query.where(Lead.form_id == filters.form_id)
            if filters.classification:
                query = query.where(Lead.classification == filters.classification)
            if filters.follow_up_status:
                query = query.where(Lead.follow_up_status == filters.follow_up_status)
            if filters.email_sent is not None:
                query = query.where(Lead.email_sent == filters.email_sent)

        query = query.order_by(Lead.created_at.desc())
        return await paginate_query(self.session, query, page, limit)

    async def get_stats(self, owner_id: Optional[uuid.UUID] = None) -> dict:
        """Count and average confidence per classification."""
        query = select(
            Lead.classification,
            func.count(Lead.id),
            func.avg(Lead.confidence_score)
        ).group_by(Lead.classification)
        if owner_id:
            query = query.where(Lead.owner_id == owner_id)

        result = await self.session.exec(query)
        rows = result.all()

        by_classification = {
            label: {"count": 0, "avg_confidence": 0.0}
            for label in ("hot", "normal", "cold")
        }
        for label, count, avg in rows:
            by_classification[label] = {
                "count": count,
                "avg_confidence": round(float(avg or 0), 3)
            }

        return {
            "total": sum(item["count"] for item in by_classification.values()),
            "by_classification": by_classification
        }
