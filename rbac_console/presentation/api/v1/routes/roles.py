from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from rbac_console.application.services import RoleService
from rbac_console.presentation.api.dependencies import get_role_service, require_super_admin, unwrap
from rbac_console.presentation.api.v1.schemas.role import (
    RoleCreate,
    RoleDuplicate,
    RoleListParams,
    RolePermissionsUpdate,
    RoleUpdate,
)

router = APIRouter(dependencies=[Depends(require_super_admin)])


@router.get("")
async def list_roles(
    params: Annotated[RoleListParams, Query()],
    service: Annotated[RoleService, Depends(get_role_service)],
):
    """List roles with filtering, sorting and pagination"""
    result = await service.list_roles(
        search=params.search,
        module_id=params.module_id,
        global_only=params.global_only,
        is_system=params.is_system,
        sort_by=params.sort_by,
        sort_order=params.sort_order.value,
        page=params.page,
        per_page=params.per_page,
    )
    return unwrap(result)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_role(
    data: RoleCreate,
    service: Annotated[RoleService, Depends(get_role_service)],
):
    """Create a non-system role"""
    result = await service.create_role(
        name=data.name,
        display_name=data.display_name,
        description=data.description,
        module_id=data.module_id,
        priority=data.priority,
    )
    return unwrap(result)


@router.get("/{role_id}")
async def get_role(role_id: str, service: Annotated[RoleService, Depends(get_role_service)]):
    """Role with its permissions and assigned user count"""
    return unwrap(await service.get_role(role_id))


@router.patch("/{role_id}")
async def update_role(
    role_id: str,
    data: RoleUpdate,
    service: Annotated[RoleService, Depends(get_role_service)],
):
    """Update display name, description or priority (system roles are read-only)"""
    result = await service.update_role(
        role_id,
        display_name=data.display_name,
        description=data.description,
        priority=data.priority,
    )
    return unwrap(result)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(role_id: str, service: Annotated[RoleService, Depends(get_role_service)]):
    """Delete a role that no user holds"""
    unwrap(await service.delete_role(role_id))


@router.post("/{role_id}/duplicate", status_code=status.HTTP_201_CREATED)
async def duplicate_role(
    role_id: str,
    data: RoleDuplicate,
    service: Annotated[RoleService, Depends(get_role_service)],
):
    """Copy a role and its permissions; check permissions_copied in the response"""
    result = await service.duplicate_role(role_id, data.new_name)
    role = unwrap(result)
    return {**role, "warnings": result.warnings}


@router.get("/{role_id}/permissions")
async def get_role_permissions(
    role_id: str, service: Annotated[RoleService, Depends(get_role_service)]
):
    return unwrap(await service.get_role_permissions(role_id))


@router.put("/{role_id}/permissions")
async def update_role_permissions(
    role_id: str,
    data: RolePermissionsUpdate,
    service: Annotated[RoleService, Depends(get_role_service)],
):
    """Replace the role's permission set; returns the added and removed ids"""
    return unwrap(await service.update_role_permissions(role_id, data.permission_ids))


@router.get("/{role_id}/users")
async def get_role_users(role_id: str, service: Annotated[RoleService, Depends(get_role_service)]):
    return unwrap(await service.get_role_users(role_id))
