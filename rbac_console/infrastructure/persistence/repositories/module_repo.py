from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.infrastructure.persistence.models.module import Module
from rbac_console.infrastructure.persistence.repositories.base import BaseRepository, store_operation


class ModuleRepository(BaseRepository[Module]):
    """Repository for Module reads"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Module)

    @store_operation("list_active_modules")
    async def list_active(self) -> list[Module]:
        """Active modules ordered by display name"""
        result = await self.db.execute(
            select(Module).where(Module.is_active.is_(True)).order_by(Module.display_name)
        )
        return list(result.scalars().all())

    @store_operation("count_active_modules")
    async def count_active(self) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Module).where(Module.is_active.is_(True))
        )
        return int(result.scalar_one())
