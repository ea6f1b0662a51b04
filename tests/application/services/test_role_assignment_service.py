"""Tests for RoleAssignmentService"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select

from rbac_console.application.results import STALE_CACHE_WARNING
from rbac_console.application.services import RoleAssignmentService
from rbac_console.domain.enums import ActivityAction
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator
from rbac_console.infrastructure.cache.redis_cache import RedisCacheBackend
from rbac_console.infrastructure.persistence.models import ActivityLog
from rbac_console.infrastructure.persistence.repositories import UserRoleRepository
from rbac_console.shared.context import set_current_user
from rbac_console.shared.utils import utc_now


@pytest.fixture
def service(test_db, cache):
    return RoleAssignmentService(test_db, cache=cache)


async def test_assign_role(service, test_db, editor_role):
    set_current_user("admin-user")
    expires_at = utc_now() + timedelta(days=7)

    result = await service.assign_role("u1", "role-editor", expires_at=expires_at, metadata={"ticket": "OPS-1"})

    assert result.success is True
    assert result.data["role_name"] == "editor"
    assert result.data["assigned_by"] == "admin-user"
    assert result.data["metadata"] == {"ticket": "OPS-1"}
    assert result.data["is_expired"] is False
    assert result.data["expires_at"] is not None

    entry = (
        await test_db.execute(
            select(ActivityLog).where(ActivityLog.action == ActivityAction.ROLE_ASSIGNED.value)
        )
    ).scalar_one()
    assert entry.user_id == "admin-user"
    assert entry.resource_id == "u1:role-editor"


async def test_assign_unknown_role(service, modules):
    result = await service.assign_role("u1", "role-missing")

    assert result.error_code == "NOT_FOUND"


async def test_assign_twice_is_rejected(service, editor_role):
    await service.assign_role("u1", "role-editor")

    result = await service.assign_role("u1", "role-editor")

    assert result.success is False
    assert result.error_code == "ROLE_ALREADY_ASSIGNED"


async def test_remove_role(service, test_db, editor_role, assign):
    await assign("u1", "role-editor")

    result = await service.remove_role("u1", "role-editor")

    assert result.success is True
    assert await UserRoleRepository(test_db).get_assignment("u1", "role-editor") is None


async def test_remove_missing_assignment(service, editor_role):
    result = await service.remove_role("u1", "role-editor")

    assert result.success is False
    assert result.error_code == "NOT_FOUND"


async def test_list_flags_expired_assignments(service, super_admin_role, editor_role, assign):
    await assign("u1", "role-editor", expires_at=utc_now() - timedelta(hours=1))
    await assign("u1", "role-super-admin")

    result = await service.list_user_roles("u1")

    by_role = {row["role_id"]: row for row in result.data}
    assert by_role["role-editor"]["is_expired"] is True
    assert by_role["role-super-admin"]["is_expired"] is False
    # Highest priority first
    assert result.data[0]["role_id"] == "role-super-admin"


async def test_assignment_invalidates_cached_listing(service, editor_role):
    assert (await service.list_user_roles("u1")).data == []

    await service.assign_role("u1", "role-editor")

    assert [row["role_id"] for row in (await service.list_user_roles("u1")).data] == ["role-editor"]


async def test_failed_invalidation_is_reported_as_warning(test_db, editor_role):
    backend = RedisCacheBackend(redis_client=AsyncMock())
    backend.redis.smembers.side_effect = RedisConnectionError("connection reset")
    service = RoleAssignmentService(test_db, cache=CacheCoordinator(backend))

    result = await service.assign_role("u1", "role-editor")

    assert result.success is True
    assert result.warnings == [STALE_CACHE_WARNING]
    assert await UserRoleRepository(test_db).get_assignment("u1", "role-editor") is not None
