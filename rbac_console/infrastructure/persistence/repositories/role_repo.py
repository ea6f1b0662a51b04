from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.domain.enums import SortOrder
from rbac_console.domain.value_objects import Page
from rbac_console.infrastructure.persistence.models.permission import UserRole
from rbac_console.infrastructure.persistence.models.role import Role
from rbac_console.infrastructure.persistence.repositories.base import BaseRepository, store_operation

SORTABLE_COLUMNS = {
    "name": Role.name,
    "display_name": Role.display_name,
    "priority": Role.priority,
    "created_at": Role.created_at,
}


@dataclass(frozen=True)
class RoleFilter:
    """
    Role listing filter.

    module_id narrows to one module's roles; global_only narrows to roles
    with no module. search matches name, display name and description.
    """

    search: str | None = None
    module_id: str | None = None
    global_only: bool = False
    is_system: bool | None = None


@dataclass(frozen=True)
class RoleUserRow:
    user_id: str
    assigned_at: datetime
    expires_at: datetime | None


class RoleRepository(BaseRepository[Role]):
    """Repository for Role operations"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Role)

    @store_operation("get_role_by_name_and_module")
    async def get_by_name_and_module(self, name: str, module_id: str | None) -> Role | None:
        """Get role by name within a module; module_id None means a global role"""
        query = select(Role).where(Role.name == name)
        if module_id is None:
            query = query.where(Role.module_id.is_(None))
        else:
            query = query.where(Role.module_id == module_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    @store_operation("list_roles")
    async def list_roles(
        self,
        filters: RoleFilter | None = None,
        sort_by: str = "priority",
        sort_order: SortOrder = SortOrder.DESC,
        page: Page | None = None,
    ) -> tuple[list[Role], int]:
        """Filtered, sorted page of roles plus the total match count"""
        filters = filters or RoleFilter()
        page = page or Page()

        query = select(Role)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    Role.name.ilike(pattern),
                    Role.display_name.ilike(pattern),
                    Role.description.ilike(pattern),
                )
            )
        if filters.global_only:
            query = query.where(Role.module_id.is_(None))
        elif filters.module_id is not None:
            query = query.where(Role.module_id == filters.module_id)
        if filters.is_system is not None:
            query = query.where(Role.is_system.is_(filters.is_system))

        total_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = int(total_result.scalar_one())

        column = SORTABLE_COLUMNS.get(sort_by, Role.priority)
        ordering = column.asc() if sort_order == SortOrder.ASC else column.desc()
        query = query.order_by(ordering, Role.name.asc()).offset(page.offset).limit(page.per_page)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    @store_operation("count_assigned_users")
    async def count_assigned_users(self, role_id: str) -> int:
        """Number of assignments referencing the role, expired ones included"""
        result = await self.db.execute(
            select(func.count()).select_from(UserRole).where(UserRole.role_id == role_id)
        )
        return int(result.scalar_one())

    @store_operation("get_role_users")
    async def get_role_users(self, role_id: str) -> list[RoleUserRow]:
        """Users holding the role with assignment dates"""
        result = await self.db.execute(
            select(UserRole.user_id, UserRole.assigned_at, UserRole.expires_at)
            .where(UserRole.role_id == role_id)
            .order_by(UserRole.assigned_at.desc())
        )
        return [
            RoleUserRow(user_id=row.user_id, assigned_at=row.assigned_at, expires_at=row.expires_at)
            for row in result.all()
        ]
