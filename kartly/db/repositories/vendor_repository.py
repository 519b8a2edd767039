# kartly/db/repositories/vendor_repository.py
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.db.models.vendor import Vendor
from kartly.db.repositories.base import BaseRepository


class VendorRepository(BaseRepository[Vendor]):
    """Repository for Vendor operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Vendor, session)

    async def get_by_email(self, email: str) -> Optional[Vendor]:
        result = await self.session.execute(
            select(Vendor).where(Vendor.email == email)
        )
        return result.scalar_one_or_none()
