from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rbac_console.application.services import PermissionResolver, RoleService
from rbac_console.presentation.api.dependencies import (
    get_current_user,
    get_permission_resolver,
    get_role_service,
    require_super_admin,
    unwrap,
)
from rbac_console.presentation.api.v1.schemas.role import PermissionCheckResponse
from rbac_console.presentation.api.v1.schemas.token import TokenPayload

router = APIRouter()


@router.get("/permissions", dependencies=[Depends(require_super_admin)])
async def list_permissions(
    service: Annotated[RoleService, Depends(get_role_service)],
    module_id: str | None = None,
    grouped: bool = False,
):
    """All permissions, flat or grouped by module display name"""
    if grouped:
        return unwrap(await service.get_available_permissions())
    return unwrap(await service.list_permissions(module_id))


@router.get("/modules", dependencies=[Depends(require_super_admin)])
async def list_modules(service: Annotated[RoleService, Depends(get_role_service)]):
    """Active modules"""
    return unwrap(await service.list_modules())


@router.get("/me/permissions")
async def get_my_permissions(
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    resolver: Annotated[PermissionResolver, Depends(get_permission_resolver)],
):
    """Effective permissions of the caller as module -> resource -> actions"""
    permissions = await resolver.get_user_permissions(current_user.sub)
    return {
        "user_id": current_user.sub,
        "permissions": permissions.to_dict(),
        "is_super_admin": await resolver.is_super_admin(current_user.sub),
    }


@router.get("/me/permissions/check", response_model=PermissionCheckResponse)
async def check_my_permission(
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    resolver: Annotated[PermissionResolver, Depends(get_permission_resolver)],
    module: Annotated[str, Query(min_length=1)],
    resource: Annotated[str, Query(min_length=1)],
    action: Annotated[str, Query(min_length=1)],
):
    """Whether the caller may perform an action; never errors, denies on failure"""
    allowed = await resolver.has_permission(module, resource, action, user_id=current_user.sub)
    return PermissionCheckResponse(module=module, resource=resource, action=action, allowed=allowed)
