"""
Owner repository.
"""
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.models.owner import Owner
from leadcapture.repositories.base import BaseRepository


class OwnerRepository(BaseRepository[Owner]):
    """Repository for Owner operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Owner, session)
