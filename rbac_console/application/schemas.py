"""
Read models returned by the application services.

Services hand out ``model_dump(mode="json")`` dictionaries of these models so
results can be cached as JSON and returned by the HTTP layer unchanged.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rbac_console.shared.utils import ensure_utc


class ReadModel(BaseModel):
    """Base for read models built from ORM rows or repository dataclasses"""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("*", mode="after")
    @classmethod
    def _utc_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value


class ModuleRead(ReadModel):
    id: str
    name: str
    display_name: str
    description: str | None = None
    is_active: bool


class RoleRead(ReadModel):
    id: str
    name: str
    display_name: str
    description: str | None = None
    module_id: str | None = None
    is_system: bool
    priority: int
    created_at: datetime
    updated_at: datetime


class PermissionRead(ReadModel):
    id: str
    module_id: str
    module_name: str
    module_display_name: str
    resource: str
    action: str
    description: str | None = None


class RoleDetail(RoleRead):
    """Role with its granted permissions and assignment count"""

    permissions: list[PermissionRead] = Field(default_factory=list)
    user_count: int = 0


class DuplicatedRole(RoleRead):
    """
    Result of a role duplication.

    permissions_copied is False when the role was created but copying its
    permissions failed; the new role then has no permissions.
    """

    permissions_copied: bool
    permissions_count: int


class RoleUserRead(ReadModel):
    user_id: str
    assigned_at: datetime
    expires_at: datetime | None = None


class UserRoleRead(ReadModel):
    user_id: str
    role_id: str
    role_name: str
    role_display_name: str
    module_id: str | None = None
    priority: int
    assigned_by: str | None = None
    assigned_at: datetime
    expires_at: datetime | None = None
    metadata: dict[str, Any] | None = None
    is_expired: bool = False


class ActivityLogRead(ReadModel):
    id: str
    user_id: str | None = None
    action: str
    module: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    changes: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class RoleListPage(BaseModel):
    items: list[RoleRead]
    total: int
    page: int
    per_page: int
    total_pages: int


class PermissionDiff(BaseModel):
    """Outcome of replacing a role's permission set"""

    added: list[str]
    removed: list[str]
    total: int


class DashboardStats(BaseModel):
    total_roles: int
    total_permissions: int
    active_modules: int
    total_assignments: int
    assigned_users: int
