""" Repository module for the persistence layer. """

from rbac_console.infrastructure.persistence.repositories.activity_log_repo import ActivityLogRepository
from rbac_console.infrastructure.persistence.repositories.base import BaseRepository, store_operation
from rbac_console.infrastructure.persistence.repositories.module_repo import ModuleRepository
from rbac_console.infrastructure.persistence.repositories.permission_repo import (
    PermissionRepository,
    PermissionRow,
    UserPermissionRow,
)
from rbac_console.infrastructure.persistence.repositories.role_repo import (
    RoleFilter,
    RoleRepository,
    RoleUserRow,
)
from rbac_console.infrastructure.persistence.repositories.user_role_repo import UserRoleRepository

__all__ = [
    "BaseRepository",
    "store_operation",
    "ActivityLogRepository",
    "ModuleRepository",
    "PermissionRepository",
    "PermissionRow",
    "UserPermissionRow",
    "RoleRepository",
    "RoleFilter",
    "RoleUserRow",
    "UserRoleRepository",
]
