"""
Agency repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.base import BaseRepository
from app.models.agency import Agency
from typing import List


class AgencyRepository(BaseRepository[Agency]):
    """Read access to agency profiles."""

    def __init__(self, db: AsyncSession):
        super().__init__(Agency, db)

    async def get_all(self) -> List[Agency]:
        return await self.get_multi(order_by="name")
