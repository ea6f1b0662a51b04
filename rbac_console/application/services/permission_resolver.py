"""Effective permission resolution for a user."""

import math
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.domain.enums import CacheTag
from rbac_console.domain.value_objects import PermissionMap
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator, generate_cache_key
from rbac_console.infrastructure.config.settings import get_settings
from rbac_console.infrastructure.persistence.repositories.permission_repo import (
    PermissionRepository, UserPermissionRow)
from rbac_console.infrastructure.persistence.repositories.user_role_repo import UserRoleRepository
from rbac_console.shared.context import get_current_actor_id
from rbac_console.shared.telemetry.logging import get_logger
from rbac_console.shared.utils import ensure_utc, utc_now

logger = get_logger(__name__)


class PermissionResolver:
    """
    Resolves what a user may do, failing closed.

    None of the public methods raise: a missing user, a store failure or any
    other error yields an empty map or False, and is logged.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: CacheCoordinator | None = None,
        permission_repo: PermissionRepository | None = None,
        user_role_repo: UserRoleRepository | None = None,
    ):
        self.db = db
        self.cache = cache
        self.permission_repo = permission_repo or PermissionRepository(db)
        self.user_role_repo = user_role_repo or UserRoleRepository(db)
        self.super_admin_role_name = get_settings().super_admin_role_name

    async def get_user_permissions(self, user_id: str | None = None) -> PermissionMap:
        """Effective permission map of a user (default: the current actor)"""
        user_id = user_id or get_current_actor_id()
        if not user_id:
            return PermissionMap.empty()

        try:
            if self.cache is None:
                permission_map, _ = await self._load(user_id)
                return permission_map

            key = generate_cache_key("permissions:user", user_id)
            cached_value = await self.cache.get(key)
            if cached_value is not None:
                return PermissionMap.from_dict(cached_value)

            before = self.cache.generations([CacheTag.USER_ROLES])
            permission_map, ttl_cap = await self._load(user_id)
            if ttl_cap is None or ttl_cap > 0:
                await self.cache.set(
                    key, permission_map.to_dict(), [CacheTag.USER_ROLES], ttl=ttl_cap, since=before
                )
            return permission_map
        except Exception as e:
            logger.error(
                f"Permission resolution failed for user {user_id}: {e}",
                exc_info=True,
            )
            return PermissionMap.empty()

    async def has_permission(
        self,
        module_name: str,
        resource: str,
        action: str,
        user_id: str | None = None,
    ) -> bool:
        permissions = await self.get_user_permissions(user_id)
        return permissions.allows(module_name, resource, action)

    async def can_access_module(self, module_name: str, user_id: str | None = None) -> bool:
        permissions = await self.get_user_permissions(user_id)
        return permissions.has_module(module_name)

    async def is_super_admin(self, user_id: str | None = None) -> bool:
        """Whether the user holds a live assignment to the super-admin role"""
        user_id = user_id or get_current_actor_id()
        if not user_id:
            return False
        try:
            return await self.user_role_repo.user_has_role_named(user_id, self.super_admin_role_name)
        except Exception as e:
            logger.error(f"Super-admin check failed for user {user_id}: {e}", exc_info=True)
            return False

    async def _load(self, user_id: str) -> tuple[PermissionMap, int | None]:
        """
        Query the user's grants and compute how long they may be cached.

        The second value is the number of seconds until the earliest
        contributing assignment expires, or None when none expires.
        """
        now = utc_now()
        rows = await self.permission_repo.get_user_permission_rows(user_id, now=now)
        permission_map = PermissionMap.from_triples(
            (row.module_name, row.resource, row.action) for row in rows
        )
        return permission_map, self._seconds_until_first_expiry(rows, now)

    @staticmethod
    def _seconds_until_first_expiry(rows: list[UserPermissionRow], now: datetime) -> int | None:
        expiries = [ensure_utc(row.expires_at) for row in rows if row.expires_at is not None]
        if not expiries:
            return None
        earliest = min(expiry for expiry in expiries if expiry is not None)
        return max(0, math.floor((earliest - now).total_seconds()))
