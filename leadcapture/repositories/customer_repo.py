"""
Customer (submission) repository.
"""
import uuid
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.models.columns import utcnow
from leadcapture.models.customer import Customer
from leadcapture.repositories.base import BaseRepository


class CustomerRepository(BaseRepository[Customer]):
    """Repository for Customer operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Customer, session)

    async def mark_processed(self, customer_id: uuid.UUID) -> Optional[Customer]:
        """Flag the submission as fully processed and clear any earlier failure."""
        customer = await self.get(customer_id)
        if not customer:
            return None

        customer.processed = True
        customer.processing_error = None
        customer.updated_at = utcnow()

        self.session.add(customer)
        await self.session.commit()
        await self.session.refresh(customer)
        return customer

    async def record_error(self, customer_id: uuid.UUID, message: str) -> Optional[Customer]:
        """Persist a pipeline failure on the submission."""
        return await self.update(customer_id, {"processing_error": message})
