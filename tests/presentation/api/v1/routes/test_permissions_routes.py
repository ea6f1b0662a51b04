"""Tests for permission, assignment and console endpoints"""

import pytest

from rbac_console.application.services import RoleService

API = "/api/v1"


@pytest.mark.asyncio
async def test_list_permissions_grouped(client, auth_headers):
    response = await client.get(f"{API}/permissions", headers=auth_headers, params={"grouped": True})

    assert response.status_code == 200
    assert set(response.json()) == {"Content", "Blog", "Legacy"}


@pytest.mark.asyncio
async def test_list_permissions_for_module(client, auth_headers):
    response = await client.get(f"{API}/permissions", headers=auth_headers, params={"module_id": "mod-blog"})

    assert [p["id"] for p in response.json()] == ["perm.post.read"]


@pytest.mark.asyncio
async def test_list_modules(client, auth_headers):
    response = await client.get(f"{API}/modules", headers=auth_headers)

    assert [m["name"] for m in response.json()] == ["blog", "cms"]


@pytest.mark.asyncio
async def test_my_permissions_for_regular_user(client, regular_headers):
    response = await client.get(f"{API}/me/permissions", headers=regular_headers)

    assert response.status_code == 200
    assert response.json() == {"user_id": "regular-user", "permissions": {}, "is_super_admin": False}


@pytest.mark.asyncio
async def test_my_permissions_for_admin(client, auth_headers):
    response = await client.get(f"{API}/me/permissions", headers=auth_headers)

    data = response.json()
    assert data["is_super_admin"] is True
    assert data["permissions"]["cms"]["article"] == ["publish", "read", "write"]
    assert "legacy" not in data["permissions"]


@pytest.mark.asyncio
async def test_check_my_permission(client, test_db, cache, regular_headers, permissions, editor_role, assign):
    await RoleService(test_db, cache=cache).update_role_permissions("role-editor", ["perm.read"])
    await assign("regular-user", "role-editor")

    allowed = await client.get(
        f"{API}/me/permissions/check",
        headers=regular_headers,
        params={"module": "cms", "resource": "article", "action": "read"},
    )
    denied = await client.get(
        f"{API}/me/permissions/check",
        headers=regular_headers,
        params={"module": "cms", "resource": "article", "action": "publish"},
    )

    assert allowed.json()["allowed"] is True
    assert denied.json()["allowed"] is False


@pytest.mark.asyncio
async def test_assign_and_remove_user_role(client, auth_headers, editor_role):
    response = await client.post(
        f"{API}/users/u1/roles",
        headers=auth_headers,
        json={"role_id": "role-editor", "metadata": {"reason": "onboarding"}},
    )

    assert response.status_code == 201
    assert response.json()["assigned_by"] == "admin-user"

    duplicate = await client.post(f"{API}/users/u1/roles", headers=auth_headers, json={"role_id": "role-editor"})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["error"] == "ROLE_ALREADY_ASSIGNED"

    listed = await client.get(f"{API}/users/u1/roles", headers=auth_headers)
    assert [row["role_id"] for row in listed.json()] == ["role-editor"]

    removed = await client.delete(f"{API}/users/u1/roles/role-editor", headers=auth_headers)
    assert removed.status_code == 204

    missing = await client.delete(f"{API}/users/u1/roles/role-editor", headers=auth_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_activity_log(client, auth_headers, modules):
    await client.post(f"{API}/roles", headers=auth_headers, json={"name": "auditor", "display_name": "Auditor"})

    response = await client.get(f"{API}/activity", headers=auth_headers)

    assert response.status_code == 200
    entries = response.json()
    assert entries[0]["action"] == "role_created"
    assert entries[0]["user_id"] == "admin-user"


@pytest.mark.asyncio
async def test_dashboard_stats(client, auth_headers):
    response = await client.get(f"{API}/dashboard/stats", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["total_roles"] == 1
    assert data["stats"]["assigned_users"] == 1
    assert data["cache"]["backend"] == "memory"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get(f"{API}/health")

    assert response.status_code == 200
    assert response.json()["checks"]["database"] is True
