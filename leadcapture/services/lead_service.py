"""
Lead service - read access and manual reclassification.
"""
import uuid
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.core.exceptions import NotFoundError
from leadcapture.models.lead import Lead
from leadcapture.repositories.customer_repo import CustomerRepository
from leadcapture.repositories.form_repo import FormRepository
from leadcapture.repositories.lead_repo import LeadRepository
from leadcapture.repositories.owner_repo import OwnerRepository
from leadcapture.schemas.lead import LeadFilter
from leadcapture.services.classification_service import ClassificationEngine


class LeadService:
    """Service for lead operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.customer_repo = CustomerRepository(session)
        self.form_repo = FormRepository(session)
        self.owner_repo = OwnerRepository(session)

    async def get(self, lead_id: uuid.UUID) -> Lead:
        """Get a lead by ID."""
        lead = await self.lead_repo.get(lead_id)
        if not lead:
            raise NotFoundError("Lead", str(lead_id))
        return lead

    async def list(
        self,
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """List leads with filtering and pagination."""
        return await self.lead_repo.search(filters, page, limit)

    async def get_stats(self, owner_id: Optional[uuid.UUID] = None) -> dict:
        """Get lead statistics per classification."""
        return await self.lead_repo.get_stats(owner_id)

    async def reclassify(self, lead_id: uuid.UUID, classifier: ClassificationEngine) -> Lead:
        """Run the classifier again and overwrite the lead's classification."""
        lead = await self.get(lead_id)

        customer = await self.customer_repo.get(lead.customer_id)
        if not customer:
            raise NotFoundError("Customer", str(lead.customer_id))
        form = await self.form_repo.get(lead.form_id)
        if not form:
            raise NotFoundError("Form", str(lead.form_id))
        owner = await self.owner_repo.get(lead.owner_id)
        if not owner:
            raise NotFoundError("Owner", str(lead.owner_id))

        result = await classifier.reclassify(lead, customer, form.config(), owner)
        return await self.lead_repo.update_classification(lead.id, result)
