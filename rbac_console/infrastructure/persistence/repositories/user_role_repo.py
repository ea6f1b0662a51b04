from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.infrastructure.persistence.models.permission import UserRole
from rbac_console.infrastructure.persistence.models.role import Role
from rbac_console.infrastructure.persistence.repositories.base import BaseRepository, store_operation
from rbac_console.shared.utils import utc_now


class UserRoleRepository(BaseRepository[UserRole]):
    """Repository for user-role assignments"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, UserRole)

    @store_operation("get_assignment")
    async def get_assignment(self, user_id: str, role_id: str) -> UserRole | None:
        result = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.scalar_one_or_none()

    @store_operation("list_user_roles")
    async def list_for_user(self, user_id: str) -> list[tuple[UserRole, Role]]:
        """Assignments of a user joined with their roles, highest priority first"""
        result = await self.db.execute(
            select(UserRole, Role)
            .join(Role, Role.id == UserRole.role_id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.priority.desc(), Role.name)
        )
        return [(user_role, role) for user_role, role in result.all()]

    @store_operation("delete_assignment")
    async def delete_assignment(self, user_id: str, role_id: str) -> bool:
        """Remove an assignment; False when none existed"""
        result = await self.db.execute(
            delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return bool(result.rowcount)

    @store_operation("user_has_role_named")
    async def user_has_role_named(
        self, user_id: str, role_name: str, now: datetime | None = None
    ) -> bool:
        """Whether the user holds a live assignment to any role with this name"""
        now = now or utc_now()
        result = await self.db.execute(
            select(func.count())
            .select_from(UserRole)
            .join(Role, Role.id == UserRole.role_id)
            .where(
                UserRole.user_id == user_id,
                Role.name == role_name,
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > now),
            )
        )
        return int(result.scalar_one()) > 0

    @store_operation("count_assigned_users")
    async def count_users(self) -> int:
        """Distinct users holding at least one assignment"""
        result = await self.db.execute(select(func.count(func.distinct(UserRole.user_id))))
        return int(result.scalar_one())
