"""Console overview figures."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.application.schemas import DashboardStats
from rbac_console.domain.enums import CacheTag
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator, cached
from rbac_console.infrastructure.persistence.repositories import (
    ModuleRepository, PermissionRepository, RoleRepository, UserRoleRepository)


class DashboardService:
    def __init__(self, db: AsyncSession, cache: CacheCoordinator | None = None):
        self.db = db
        self.cache = cache
        self.roles = RoleRepository(db)
        self.permissions = PermissionRepository(db)
        self.modules = ModuleRepository(db)
        self.user_roles = UserRoleRepository(db)

    @cached("dashboard:stats", tags=[CacheTag.ALL])
    async def get_dashboard_stats(self) -> dict[str, Any]:
        """Totals shown on the console home page; short-lived, cleared by any write"""
        return DashboardStats(
            total_roles=await self.roles.count(),
            total_permissions=await self.permissions.count(),
            active_modules=await self.modules.count_active(),
            total_assignments=await self.user_roles.count(),
            assigned_users=await self.user_roles.count_users(),
        ).model_dump()
