"""
Role management with the guard rules of the access-control model.

Every mutation follows the same order: existence checks, guard conditions,
the write and its commit, the activity log entry, then cache invalidation.
A change that commits but cannot be cleared from the cache still succeeds,
with a warning on its result.
"""

import math
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.application.results import STALE_CACHE_WARNING, OperationResult, returns_result
from rbac_console.application.schemas import (
    DuplicatedRole, ModuleRead, PermissionDiff, PermissionRead, RoleDetail,
    RoleListPage, RoleRead, RoleUserRead)
from rbac_console.application.services.activity_log_service import ActivityLogService
from rbac_console.application.services.permission_grouping import group_permissions_by_module
from rbac_console.domain.enums import ActivityAction, CacheTag, SortOrder
from rbac_console.domain.exceptions import (
    ConflictError, ConstraintViolationError, ForbiddenError, NotFoundError,
    RoleInUseError, StoreError, SuperAdminFloorError, ValidationException)
from rbac_console.domain.value_objects import Page
from rbac_console.infrastructure.cache.base import CacheInvalidationError
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator, cached
from rbac_console.infrastructure.config.settings import get_settings
from rbac_console.infrastructure.persistence.database import commit_or_rollback
from rbac_console.infrastructure.persistence.models.role import Role
from rbac_console.infrastructure.persistence.repositories import (
    ModuleRepository, PermissionRepository, RoleFilter, RoleRepository)
from rbac_console.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

RESOURCE_TYPE = "role"


class RoleService:
    """Creates, edits, deletes and duplicates roles and manages their permission sets"""

    def __init__(
        self,
        db: AsyncSession,
        cache: CacheCoordinator | None = None,
        activity: ActivityLogService | None = None,
    ):
        self.db = db
        self.cache = cache
        self.roles = RoleRepository(db)
        self.permissions = PermissionRepository(db)
        self.modules = ModuleRepository(db)
        self.activity = activity or ActivityLogService(db)
        self.super_admin_role_name = get_settings().super_admin_role_name

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @returns_result("create_role")
    async def create_role(
        self,
        name: str,
        display_name: str,
        description: str | None = None,
        module_id: str | None = None,
        priority: int = 0,
    ) -> OperationResult[dict[str, Any]]:
        if module_id is not None and await self.modules.get_by_id(module_id) is None:
            raise NotFoundError("Module", module_id)
        await self._ensure_name_available(name, module_id)

        role = await self._insert_role(
            Role(
                name=name,
                display_name=display_name,
                description=description,
                module_id=module_id,
                priority=priority,
                is_system=False,
            )
        )
        data = _dump_role(role)

        await self.activity.record(
            ActivityAction.ROLE_CREATED,
            RESOURCE_TYPE,
            data["id"],
            changes={"name": name, "display_name": display_name, "module_id": module_id},
        )
        warnings = await self._invalidate(CacheTag.ROLES, CacheTag.ALL)
        logger.info(f"Role created: {name} ({data['id']})")
        return OperationResult.ok(data, warnings=warnings)

    @returns_result("update_role")
    async def update_role(
        self,
        role_id: str,
        display_name: str | None = None,
        description: str | None = None,
        priority: int | None = None,
    ) -> OperationResult[dict[str, Any]]:
        """Only display name, description and priority are editable"""
        role = await self._get_mutable_role(role_id, "Cannot modify system roles")

        old = {"display_name": role.display_name, "description": role.description, "priority": role.priority}
        if display_name is not None:
            role.display_name = display_name
        if description is not None:
            role.description = description
        if priority is not None:
            role.priority = priority

        async with commit_or_rollback(self.db):
            role = await self.roles.update(role)
        data = _dump_role(role)
        new = {key: data[key] for key in old}

        await self.activity.record(
            ActivityAction.ROLE_UPDATED, RESOURCE_TYPE, role_id, changes={"old": old, "new": new}
        )
        return OperationResult.ok(data, warnings=await self._invalidate(CacheTag.ROLES))

    @returns_result("delete_role")
    async def delete_role(self, role_id: str) -> OperationResult[None]:
        role = await self._get_mutable_role(role_id, "Cannot delete system roles")

        user_count = await self.roles.count_assigned_users(role_id)
        if user_count > 0:
            raise RoleInUseError(role_id, user_count)

        snapshot = _dump_role(role)
        # Role-permission edges go with the role through ON DELETE CASCADE
        async with commit_or_rollback(self.db):
            await self.roles.delete(role)

        await self.activity.record(
            ActivityAction.ROLE_DELETED, RESOURCE_TYPE, role_id, changes={"deleted_role": snapshot}
        )
        warnings = await self._invalidate(CacheTag.ROLES, CacheTag.USER_ROLES, CacheTag.ALL)
        logger.info(f"Role deleted: {snapshot['name']} ({role_id})")
        return OperationResult.ok(None, warnings=warnings)

    @returns_result("duplicate_role")
    async def duplicate_role(self, role_id: str, new_name: str) -> OperationResult[dict[str, Any]]:
        """
        Copy a role and its permissions under a new name.

        Runs in two commits. When the second one (copying permissions) fails
        the new role is kept without permissions, the result is still a
        success, permissions_copied is False and a warning is attached.
        """
        source = await self.roles.get_by_id(role_id)
        if source is None:
            raise NotFoundError("Role", role_id)
        await self._ensure_name_available(new_name, source.module_id)

        new_role = await self._insert_role(
            Role(
                name=new_name,
                display_name=f"{source.display_name} (Copy)",
                description=source.description,
                module_id=source.module_id,
                priority=source.priority,
                is_system=False,
            )
        )
        role_data = _dump_role(new_role)

        warnings: list[str] = []
        permissions_copied = True
        copied_count = 0
        try:
            async with commit_or_rollback(self.db):
                permission_ids = await self.permissions.get_permission_ids_for_role(role_id)
                copied_count = await self.permissions.add_permissions_to_role(role_data["id"], permission_ids)
        except StoreError as e:
            permissions_copied = False
            copied_count = 0
            warnings.append("Role was created but its permissions could not be copied")
            logger.warning(f"Permission copy failed for duplicated role {role_data['id']}: {e.message}")

        data = DuplicatedRole(
            **role_data, permissions_copied=permissions_copied, permissions_count=copied_count
        ).model_dump(mode="json")

        await self.activity.record(
            ActivityAction.ROLE_DUPLICATED,
            RESOURCE_TYPE,
            role_data["id"],
            changes={
                "original_role_id": role_id,
                "new_role_name": new_name,
                "permissions_copied": permissions_copied,
            },
        )
        warnings.extend(await self._invalidate(CacheTag.ROLES, CacheTag.ALL))
        return OperationResult.ok(data, warnings=warnings)

    @returns_result("update_role_permissions")
    async def update_role_permissions(
        self, role_id: str, permission_ids: list[str]
    ) -> OperationResult[dict[str, Any]]:
        """
        Replace a role's permission set with exactly the given ids.

        Removals are applied before additions, both in one commit. Re-running
        with the same ids after a failure converges, since the diff is always
        taken against the current edges.
        """
        desired = set(permission_ids)

        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role", role_id)

        missing = desired - await self.permissions.get_existing_ids(desired)
        if missing:
            raise NotFoundError("Permission", sorted(missing))

        if role.name == self.super_admin_role_name and not desired:
            raise SuperAdminFloorError(role.name)

        current = await self.permissions.get_permission_ids_for_role(role_id)
        to_add = desired - current
        to_remove = current - desired

        async with commit_or_rollback(self.db):
            await self.permissions.remove_permissions_from_role(role_id, to_remove)
            await self.permissions.add_permissions_to_role(role_id, to_add)

        diff = PermissionDiff(added=sorted(to_add), removed=sorted(to_remove), total=len(desired))

        await self.activity.record(
            ActivityAction.ROLE_PERMISSIONS_UPDATED,
            RESOURCE_TYPE,
            role_id,
            changes={"added": len(to_add), "removed": len(to_remove), "total": len(desired)},
        )
        warnings = await self._invalidate(CacheTag.ROLES, CacheTag.USER_ROLES)
        return OperationResult.ok(diff.model_dump(), warnings=warnings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @returns_result("list_roles")
    @cached("roles:list", tags=[CacheTag.ROLES])
    async def list_roles(
        self,
        search: str | None = None,
        module_id: str | None = None,
        global_only: bool = False,
        is_system: bool | None = None,
        sort_by: str = "priority",
        sort_order: str = SortOrder.DESC.value,
        page: int = 1,
        per_page: int = 20,
    ) -> dict[str, Any]:
        try:
            window = Page(page=page, per_page=per_page)
            order = SortOrder(sort_order)
        except ValueError as e:
            raise ValidationException(str(e)) from e
        rows, total = await self.roles.list_roles(
            RoleFilter(search=search, module_id=module_id, global_only=global_only, is_system=is_system),
            sort_by=sort_by,
            sort_order=order,
            page=window,
        )
        return RoleListPage(
            items=[RoleRead.model_validate(row) for row in rows],
            total=total,
            page=window.page,
            per_page=window.per_page,
            total_pages=math.ceil(total / window.per_page) if total else 0,
        ).model_dump(mode="json")

    @returns_result("get_role")
    @cached("roles:detail", tags=[CacheTag.ROLES, CacheTag.USER_ROLES])
    async def get_role(self, role_id: str) -> dict[str, Any]:
        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role", role_id)
        permissions = await self.permissions.get_permissions_for_role(role_id)
        user_count = await self.roles.count_assigned_users(role_id)
        return RoleDetail(
            **RoleRead.model_validate(role).model_dump(),
            permissions=[PermissionRead.model_validate(p) for p in permissions],
            user_count=user_count,
        ).model_dump(mode="json")

    @returns_result("get_role_permissions")
    @cached("roles:permissions", tags=[CacheTag.ROLES])
    async def get_role_permissions(self, role_id: str) -> list[dict[str, Any]]:
        if await self.roles.get_by_id(role_id) is None:
            raise NotFoundError("Role", role_id)
        permissions = await self.permissions.get_permissions_for_role(role_id)
        return [PermissionRead.model_validate(p).model_dump(mode="json") for p in permissions]

    @returns_result("list_permissions")
    @cached("permissions:list", tags=[CacheTag.ROLES])
    async def list_permissions(self, module_id: str | None = None) -> list[dict[str, Any]]:
        permissions = await self.permissions.list_permissions(module_id)
        return [PermissionRead.model_validate(p).model_dump(mode="json") for p in permissions]

    @returns_result("get_available_permissions")
    @cached("permissions:grouped", tags=[CacheTag.ROLES])
    async def get_available_permissions(self) -> dict[str, list[dict[str, Any]]]:
        """All permissions grouped by their module's display name"""
        permissions = await self.permissions.list_permissions()
        return group_permissions_by_module(
            PermissionRead.model_validate(p).model_dump(mode="json") for p in permissions
        )

    @returns_result("get_role_users")
    @cached("roles:users", tags=[CacheTag.USER_ROLES])
    async def get_role_users(self, role_id: str) -> list[dict[str, Any]]:
        if await self.roles.get_by_id(role_id) is None:
            raise NotFoundError("Role", role_id)
        rows = await self.roles.get_role_users(role_id)
        return [RoleUserRead.model_validate(row).model_dump(mode="json") for row in rows]

    @returns_result("list_modules")
    @cached("modules:active", tags=[CacheTag.ROLES])
    async def list_modules(self) -> list[dict[str, Any]]:
        modules = await self.modules.list_active()
        return [ModuleRead.model_validate(m).model_dump(mode="json") for m in modules]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_mutable_role(self, role_id: str, forbidden_message: str) -> Role:
        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role", role_id)
        if role.is_system:
            raise ForbiddenError(forbidden_message, role_id=role_id)
        return role

    async def _ensure_name_available(self, name: str, module_id: str | None) -> None:
        if await self.roles.get_by_name_and_module(name, module_id) is not None:
            raise ConflictError(
                "Role with this name already exists",
                details={"name": name, "module_id": module_id},
            )

    async def _insert_role(self, role: Role) -> Role:
        """
        Insert and commit a new role.

        A concurrent insert of the same name passes the availability check
        too; the store's unique indexes reject the loser, reported here as
        the same conflict the check raises.
        """
        name, module_id = role.name, role.module_id
        try:
            async with commit_or_rollback(self.db):
                return await self.roles.create(role)
        except ConstraintViolationError:
            await self._ensure_name_available(name, module_id)
            raise

    async def _invalidate(self, *tags: CacheTag) -> list[str]:
        """Clear cached reads after a committed change; failures become warnings"""
        if self.cache is None:
            return []
        try:
            await self.cache.invalidate(*tags)
        except CacheInvalidationError as e:
            logger.error(f"Role change committed but not invalidated: {e}")
            return [STALE_CACHE_WARNING]
        return []


def _dump_role(role: Role) -> dict[str, Any]:
    return RoleRead.model_validate(role).model_dump(mode="json")
