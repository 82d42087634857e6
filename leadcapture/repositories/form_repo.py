"""
Form repository.
"""
import uuid

from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.models.columns import utcnow
from leadcapture.models.form import Form
from leadcapture.repositories.base import BaseRepository


class FormRepository(BaseRepository[Form]):
    """Repository for Form operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Form, session)

    async def increment_submissions(self, form_id: uuid.UUID) -> bool:
        """Bump the submission counter."""
        form = await self.get(form_id)
        if form:
            form.submission_count += 1
            form.updated_at = utcnow()
            self.session.add(form)
            await self.session.commit()
            return True
        return False
