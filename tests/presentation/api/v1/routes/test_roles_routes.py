"""Tests for role management endpoints"""

import pytest

API = "/api/v1/roles"


@pytest.mark.asyncio
async def test_list_roles_requires_authentication(client):
    response = await client.get(API)

    # HTTPBearer rejects a missing header before the route runs
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_list_roles_requires_super_admin(client, regular_headers, admin_user):
    response = await client.get(API, headers=regular_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Super admin access required"


@pytest.mark.asyncio
async def test_invalid_token(client):
    response = await client.get(API, headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_roles(client, auth_headers, editor_role):
    response = await client.get(API, headers=auth_headers, params={"sort_by": "name", "sort_order": "asc"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [item["name"] for item in data["items"]] == ["editor", "super_admin"]


@pytest.mark.asyncio
async def test_list_roles_rejects_unknown_sort_column(client, auth_headers):
    response = await client.get(API, headers=auth_headers, params={"sort_by": "password"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_role(client, auth_headers, modules):
    response = await client.post(
        API,
        headers=auth_headers,
        json={"name": "content-reviewer", "display_name": "Content Reviewer", "module_id": "mod-cms"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "content-reviewer"
    assert data["is_system"] is False


@pytest.mark.asyncio
async def test_create_role_rejects_bad_name(client, auth_headers):
    response = await client.post(API, headers=auth_headers, json={"name": "Editor!", "display_name": "X"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_duplicate_role(client, auth_headers, editor_role):
    response = await client.post(
        API,
        headers=auth_headers,
        json={"name": "editor", "display_name": "Editor", "module_id": "mod-cms"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_get_role(client, auth_headers, editor_role):
    response = await client.get(f"{API}/role-editor", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["user_count"] == 0


@pytest.mark.asyncio
async def test_get_missing_role(client, auth_headers):
    response = await client.get(f"{API}/role-missing", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_update_system_role_is_forbidden(client, auth_headers):
    response = await client.patch(
        f"{API}/role-super-admin", headers=auth_headers, json={"display_name": "Renamed"}
    )

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == "Cannot modify system roles"


@pytest.mark.asyncio
async def test_update_role(client, auth_headers, editor_role):
    response = await client.patch(f"{API}/role-editor", headers=auth_headers, json={"priority": 50})

    assert response.status_code == 200
    assert response.json()["priority"] == 50


@pytest.mark.asyncio
async def test_delete_role_in_use(client, auth_headers, editor_role, assign):
    await assign("u1", "role-editor")

    response = await client.delete(f"{API}/role-editor", headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "ROLE_IN_USE"


@pytest.mark.asyncio
async def test_delete_role(client, auth_headers, editor_role):
    response = await client.delete(f"{API}/role-editor", headers=auth_headers)

    assert response.status_code == 204

    response = await client.get(f"{API}/role-editor", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_role(client, auth_headers, editor_role):
    response = await client.post(
        f"{API}/role-editor/duplicate", headers=auth_headers, json={"new_name": "editor-copy"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "editor-copy"
    assert data["permissions_copied"] is True
    assert data["warnings"] == []


@pytest.mark.asyncio
async def test_replace_role_permissions(client, auth_headers, editor_role):
    response = await client.put(
        f"{API}/role-editor/permissions",
        headers=auth_headers,
        json={"permission_ids": ["perm.read", "perm.post.read"]},
    )

    assert response.status_code == 200
    assert response.json() == {"added": ["perm.post.read", "perm.read"], "removed": [], "total": 2}

    response = await client.get(f"{API}/role-editor/permissions", headers=auth_headers)
    assert {p["id"] for p in response.json()} == {"perm.read", "perm.post.read"}


@pytest.mark.asyncio
async def test_super_admin_floor(client, auth_headers):
    response = await client.put(
        f"{API}/role-super-admin/permissions", headers=auth_headers, json={"permission_ids": []}
    )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "SUPER_ADMIN_FLOOR"


@pytest.mark.asyncio
async def test_role_users(client, auth_headers):
    response = await client.get(f"{API}/role-super-admin/users", headers=auth_headers)

    assert response.status_code == 200
    assert [u["user_id"] for u in response.json()] == ["admin-user"]
