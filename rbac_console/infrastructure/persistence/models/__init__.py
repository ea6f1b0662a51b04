from rbac_console.infrastructure.persistence.models.activity_log import ActivityLog
# Mixins for model composition
from rbac_console.infrastructure.persistence.models.mixins import (
    CreatedAtMixin, CuidMixin, TimestampMixin)
from rbac_console.infrastructure.persistence.models.module import Module
from rbac_console.infrastructure.persistence.models.permission import (
    Permission, RolePermission, UserRole)
from rbac_console.infrastructure.persistence.models.role import Role

__all__ = [
    # Models
    "Module",
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",
    "ActivityLog",
    # Mixins
    "CuidMixin",
    "CreatedAtMixin",
    "TimestampMixin",
]
