from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from rbac_console.domain.enums import SortOrder

ROLE_NAME_PATTERN = r"^[a-z][a-z0-9_-]*$"


# Role Schemas
class RoleCreate(BaseModel):
    """Schema for creating a role"""

    name: str = Field(
        ..., min_length=1, max_length=100, pattern=ROLE_NAME_PATTERN,
        description="Role name, unique within its module (e.g., 'editor')",
    )
    display_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, description="Role description")
    module_id: str | None = Field(None, description="Owning module; omit for a global role")
    priority: int = Field(0, ge=0, le=1000)


class RoleUpdate(BaseModel):
    """Schema for updating a role; name, module and system flag are immutable"""

    display_name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    priority: int | None = Field(None, ge=0, le=1000)


class RoleDuplicate(BaseModel):
    new_name: str = Field(..., min_length=1, max_length=100, pattern=ROLE_NAME_PATTERN)


class RoleListParams(BaseModel):
    """Query parameters of the role listing"""

    search: str | None = None
    module_id: str | None = None
    global_only: bool = False
    is_system: bool | None = None
    sort_by: str = Field("priority", pattern=r"^(name|display_name|priority|created_at)$")
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1, le=100)


# Role-Permission Assignment Schemas
class RolePermissionsUpdate(BaseModel):
    """The complete desired permission set of a role"""

    permission_ids: list[str] = Field(..., description="Permission IDs the role should hold")


# User-Role Assignment Schemas
class UserRoleAssign(BaseModel):
    """Schema for assigning a role to a user"""

    role_id: str = Field(..., description="Role ID to assign")
    expires_at: datetime | None = Field(None, description="Optional expiration time")
    metadata: dict[str, Any] | None = None


class PermissionCheckResponse(BaseModel):
    module: str
    resource: str
    action: str
    allowed: bool
