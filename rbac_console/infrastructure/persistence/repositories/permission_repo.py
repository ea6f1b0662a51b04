from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, delete, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.infrastructure.persistence.models.module import Module
from rbac_console.infrastructure.persistence.models.permission import (
    Permission, RolePermission, UserRole)
from rbac_console.infrastructure.persistence.models.role import Role
from rbac_console.infrastructure.persistence.repositories.base import BaseRepository, store_operation
from rbac_console.shared.utils import utc_now


@dataclass(frozen=True)
class PermissionRow:
    """Permission joined with its module"""

    id: str
    module_id: str
    module_name: str
    module_display_name: str
    resource: str
    action: str
    description: str | None


@dataclass(frozen=True)
class UserPermissionRow:
    """One (module, resource, action) grant reaching a user, with the assignment's expiry"""

    module_name: str
    resource: str
    action: str
    expires_at: datetime | None


class PermissionRepository(BaseRepository[Permission]):
    """Repository for permissions and role-permission edges"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Permission)

    @staticmethod
    def _joined() -> Select:
        return select(
            Permission.id,
            Permission.module_id,
            Module.name.label("module_name"),
            Module.display_name.label("module_display_name"),
            Permission.resource,
            Permission.action,
            Permission.description,
        ).join(Module, Module.id == Permission.module_id)

    @staticmethod
    def _to_row(row) -> PermissionRow:
        return PermissionRow(
            id=row.id,
            module_id=row.module_id,
            module_name=row.module_name,
            module_display_name=row.module_display_name,
            resource=row.resource,
            action=row.action,
            description=row.description,
        )

    @store_operation("list_permissions")
    async def list_permissions(self, module_id: str | None = None) -> list[PermissionRow]:
        """All permissions, optionally for one module, ordered by resource then action"""
        query = self._joined()
        if module_id is not None:
            query = query.where(Permission.module_id == module_id)
        query = query.order_by(Permission.resource, Permission.action)
        result = await self.db.execute(query)
        return [self._to_row(row) for row in result.all()]

    @store_operation("get_permissions_for_role")
    async def get_permissions_for_role(self, role_id: str) -> list[PermissionRow]:
        query = (
            self._joined()
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.resource, Permission.action)
        )
        result = await self.db.execute(query)
        return [self._to_row(row) for row in result.all()]

    @store_operation("get_permission_ids_for_role")
    async def get_permission_ids_for_role(self, role_id: str) -> set[str]:
        result = await self.db.execute(
            select(RolePermission.permission_id).where(RolePermission.role_id == role_id)
        )
        return set(result.scalars().all())

    @store_operation("get_existing_permission_ids")
    async def get_existing_ids(self, permission_ids: Collection[str]) -> set[str]:
        """Subset of the given ids that exist"""
        if not permission_ids:
            return set()
        result = await self.db.execute(
            select(Permission.id).where(Permission.id.in_(list(permission_ids)))
        )
        return set(result.scalars().all())

    @store_operation("add_permissions_to_role")
    async def add_permissions_to_role(self, role_id: str, permission_ids: Collection[str]) -> int:
        """Bulk insert role-permission edges"""
        if not permission_ids:
            return 0
        granted_at = utc_now()
        await self.db.execute(
            insert(RolePermission),
            [
                {"role_id": role_id, "permission_id": permission_id, "granted_at": granted_at}
                for permission_id in sorted(permission_ids)
            ],
        )
        return len(permission_ids)

    @store_operation("remove_permissions_from_role")
    async def remove_permissions_from_role(self, role_id: str, permission_ids: Collection[str]) -> int:
        """Bulk delete role-permission edges"""
        if not permission_ids:
            return 0
        await self.db.execute(
            delete(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id.in_(list(permission_ids)),
            )
        )
        return len(permission_ids)

    @store_operation("get_user_permission_rows")
    async def get_user_permission_rows(
        self, user_id: str, now: datetime | None = None
    ) -> list[UserPermissionRow]:
        """
        Every grant reaching a user through a live assignment, in one query.

        Assignments that have expired and modules that are inactive contribute
        nothing. Rows are not deduplicated; the same triple may appear once
        per role that grants it.
        """
        now = now or utc_now()
        query = (
            select(
                Module.name.label("module_name"),
                Permission.resource,
                Permission.action,
                UserRole.expires_at,
            )
            .select_from(UserRole)
            .join(Role, Role.id == UserRole.role_id)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .join(Module, Module.id == Permission.module_id)
            .where(
                UserRole.user_id == user_id,
                Module.is_active.is_(True),
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > now),
            )
        )
        result = await self.db.execute(query)
        return [
            UserPermissionRow(
                module_name=row.module_name,
                resource=row.resource,
                action=row.action,
                expires_at=row.expires_at,
            )
            for row in result.all()
        ]
