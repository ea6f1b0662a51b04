from typing import Annotated

from fastapi import APIRouter, Depends, status

from rbac_console.application.services import RoleAssignmentService
from rbac_console.presentation.api.dependencies import (
    get_role_assignment_service,
    require_super_admin,
    unwrap,
)
from rbac_console.presentation.api.v1.schemas.role import UserRoleAssign

router = APIRouter(dependencies=[Depends(require_super_admin)])


@router.get("/users/{user_id}/roles")
async def list_user_roles(
    user_id: str,
    service: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
):
    """Roles held by a user, expired assignments flagged"""
    return unwrap(await service.list_user_roles(user_id))


@router.post("/users/{user_id}/roles", status_code=status.HTTP_201_CREATED)
async def assign_role_to_user(
    user_id: str,
    data: UserRoleAssign,
    service: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
):
    """Assign role to user"""
    result = await service.assign_role(
        user_id,
        data.role_id,
        expires_at=data.expires_at,
        metadata=data.metadata,
    )
    return unwrap(result)


@router.delete("/users/{user_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_role_from_user(
    user_id: str,
    role_id: str,
    service: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
):
    """Remove role from user"""
    unwrap(await service.remove_role(user_id, role_id))
