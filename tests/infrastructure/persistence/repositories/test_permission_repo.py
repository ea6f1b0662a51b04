"""Tests for PermissionRepository"""

from datetime import timedelta

from rbac_console.infrastructure.persistence.models import Role
from rbac_console.infrastructure.persistence.repositories import PermissionRepository
from rbac_console.shared.utils import utc_now


async def test_list_permissions_joins_module(test_db, permissions):
    repo = PermissionRepository(test_db)

    rows = await repo.list_permissions("mod-cms")

    assert [(row.resource, row.action) for row in rows] == [
        ("article", "publish"),
        ("article", "read"),
        ("article", "write"),
    ]
    assert {row.module_display_name for row in rows} == {"Content"}


async def test_get_existing_ids(test_db, permissions):
    repo = PermissionRepository(test_db)

    existing = await repo.get_existing_ids({"perm.read", "perm.missing"})

    assert existing == {"perm.read"}
    assert await repo.get_existing_ids(set()) == set()


async def test_add_and_remove_role_permissions(test_db, permissions, editor_role):
    repo = PermissionRepository(test_db)

    added = await repo.add_permissions_to_role("role-editor", {"perm.read", "perm.write"})
    await test_db.commit()

    assert added == 2
    assert await repo.get_permission_ids_for_role("role-editor") == {"perm.read", "perm.write"}

    await repo.remove_permissions_from_role("role-editor", {"perm.write"})
    await test_db.commit()

    rows = await repo.get_permissions_for_role("role-editor")
    assert [row.id for row in rows] == ["perm.read"]


async def test_empty_edge_sets_are_noops(test_db, editor_role):
    repo = PermissionRepository(test_db)

    assert await repo.add_permissions_to_role("role-editor", set()) == 0
    assert await repo.remove_permissions_from_role("role-editor", set()) == 0


class TestUserPermissionRows:
    async def test_grants_through_live_assignment(self, test_db, permissions, editor_role, assign):
        repo = PermissionRepository(test_db)
        await repo.add_permissions_to_role("role-editor", {"perm.read", "perm.post.read"})
        await test_db.commit()
        await assign("u1", "role-editor")

        rows = await repo.get_user_permission_rows("u1")

        assert {(row.module_name, row.resource, row.action) for row in rows} == {
            ("cms", "article", "read"),
            ("blog", "post", "read"),
        }

    async def test_expired_assignment_contributes_nothing(
        self, test_db, permissions, editor_role, assign
    ):
        repo = PermissionRepository(test_db)
        await repo.add_permissions_to_role("role-editor", {"perm.read"})
        await test_db.commit()
        await assign("u1", "role-editor", expires_at=utc_now() - timedelta(minutes=1))

        assert await repo.get_user_permission_rows("u1") == []

    async def test_future_expiry_is_reported(self, test_db, permissions, editor_role, assign):
        repo = PermissionRepository(test_db)
        await repo.add_permissions_to_role("role-editor", {"perm.read"})
        await test_db.commit()
        await assign("u1", "role-editor", expires_at=utc_now() + timedelta(hours=1))

        rows = await repo.get_user_permission_rows("u1")

        assert len(rows) == 1
        assert rows[0].expires_at is not None

    async def test_inactive_module_contributes_nothing(
        self, test_db, permissions, editor_role, assign
    ):
        repo = PermissionRepository(test_db)
        await repo.add_permissions_to_role("role-editor", {"perm.legacy.view"})
        await test_db.commit()
        await assign("u1", "role-editor")

        assert await repo.get_user_permission_rows("u1") == []

    async def test_same_grant_from_two_roles_is_not_deduplicated(
        self, test_db, permissions, editor_role, assign
    ):
        test_db.add(Role(id="role-reviewer", name="reviewer", display_name="Reviewer"))
        await test_db.commit()
        repo = PermissionRepository(test_db)
        await repo.add_permissions_to_role("role-editor", {"perm.read"})
        await repo.add_permissions_to_role("role-reviewer", {"perm.read"})
        await test_db.commit()
        await assign("u1", "role-editor")
        await assign("u1", "role-reviewer")

        rows = await repo.get_user_permission_rows("u1")

        assert len(rows) == 2

    async def test_unknown_user_has_no_rows(self, test_db, permissions):
        repo = PermissionRepository(test_db)

        assert await repo.get_user_permission_rows("nobody") == []
