"""Granting and revoking roles for users."""

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.application.results import STALE_CACHE_WARNING, OperationResult, returns_result
from rbac_console.application.schemas import UserRoleRead
from rbac_console.application.services.activity_log_service import ActivityLogService
from rbac_console.domain.enums import ActivityAction, CacheTag
from rbac_console.domain.exceptions import (
    ConstraintViolationError, NotFoundError, RoleAlreadyAssignedError)
from rbac_console.infrastructure.cache.base import CacheInvalidationError
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator, cached
from rbac_console.infrastructure.persistence.database import commit_or_rollback
from rbac_console.infrastructure.persistence.models.permission import UserRole
from rbac_console.infrastructure.persistence.models.role import Role
from rbac_console.infrastructure.persistence.repositories import RoleRepository, UserRoleRepository
from rbac_console.shared.context import get_current_actor_id
from rbac_console.shared.telemetry.logging import get_logger
from rbac_console.shared.utils import ensure_utc, utc_now

logger = get_logger(__name__)

RESOURCE_TYPE = "user_role"


class RoleAssignmentService:
    """Assigns roles to users and removes them"""

    def __init__(
        self,
        db: AsyncSession,
        cache: CacheCoordinator | None = None,
        activity: ActivityLogService | None = None,
    ):
        self.db = db
        self.cache = cache
        self.roles = RoleRepository(db)
        self.user_roles = UserRoleRepository(db)
        self.activity = activity or ActivityLogService(db)

    @returns_result("assign_role")
    async def assign_role(
        self,
        user_id: str,
        role_id: str,
        expires_at: datetime | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[dict[str, Any]]:
        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role", role_id)
        await self._ensure_not_assigned(user_id, role_id)

        assigned_by = get_current_actor_id()
        try:
            async with commit_or_rollback(self.db):
                assignment = await self.user_roles.create(
                    UserRole(
                        user_id=user_id,
                        role_id=role_id,
                        assigned_by=assigned_by,
                        expires_at=ensure_utc(expires_at),
                        assignment_metadata=metadata,
                    )
                )
        except ConstraintViolationError:
            # a concurrent assignment of the same pair won the insert
            await self._ensure_not_assigned(user_id, role_id)
            raise
        data = _dump_assignment(assignment, role)

        await self.activity.record(
            ActivityAction.ROLE_ASSIGNED,
            RESOURCE_TYPE,
            f"{user_id}:{role_id}",
            changes={
                "user_id": user_id,
                "role_id": role_id,
                "role_name": data["role_name"],
                "expires_at": data["expires_at"],
            },
        )
        warnings = await self._invalidate(CacheTag.USER_ROLES, CacheTag.ALL)
        logger.info(f"Role {role_id} assigned to user {user_id}")
        return OperationResult.ok(data, warnings=warnings)

    @returns_result("remove_role")
    async def remove_role(self, user_id: str, role_id: str) -> OperationResult[None]:
        async with commit_or_rollback(self.db):
            removed = await self.user_roles.delete_assignment(user_id, role_id)
            if not removed:
                raise NotFoundError("Role assignment", f"{user_id}:{role_id}")

        await self.activity.record(
            ActivityAction.ROLE_REVOKED,
            RESOURCE_TYPE,
            f"{user_id}:{role_id}",
            changes={"user_id": user_id, "role_id": role_id},
        )
        warnings = await self._invalidate(CacheTag.USER_ROLES, CacheTag.ALL)
        logger.info(f"Role {role_id} removed from user {user_id}")
        return OperationResult.ok(None, warnings=warnings)

    @returns_result("list_user_roles")
    @cached("user_roles:list", tags=[CacheTag.USER_ROLES])
    async def list_user_roles(self, user_id: str) -> list[dict[str, Any]]:
        """All assignments of a user, expired ones flagged rather than hidden"""
        rows = await self.user_roles.list_for_user(user_id)
        return [_dump_assignment(assignment, role) for assignment, role in rows]

    async def _ensure_not_assigned(self, user_id: str, role_id: str) -> None:
        if await self.user_roles.get_assignment(user_id, role_id) is not None:
            raise RoleAlreadyAssignedError(user_id, role_id)

    async def _invalidate(self, *tags: CacheTag) -> list[str]:
        if self.cache is None:
            return []
        try:
            await self.cache.invalidate(*tags)
        except CacheInvalidationError as e:
            logger.error(f"Assignment change committed but not invalidated: {e}")
            return [STALE_CACHE_WARNING]
        return []


def _dump_assignment(assignment: UserRole, role: Role) -> dict[str, Any]:
    expires_at = ensure_utc(assignment.expires_at)
    return UserRoleRead(
        user_id=assignment.user_id,
        role_id=assignment.role_id,
        role_name=role.name,
        role_display_name=role.display_name,
        module_id=role.module_id,
        priority=role.priority,
        assigned_by=assignment.assigned_by,
        assigned_at=assignment.assigned_at,
        expires_at=expires_at,
        metadata=assignment.assignment_metadata,
        is_expired=expires_at is not None and expires_at <= utc_now(),
    ).model_dump(mode="json")
