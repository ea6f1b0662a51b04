from rbac_console.application.services.activity_log_service import ActivityLogService
from rbac_console.application.services.dashboard_service import DashboardService
from rbac_console.application.services.permission_grouping import group_permissions_by_module
from rbac_console.application.services.permission_resolver import PermissionResolver
from rbac_console.application.services.role_assignment_service import RoleAssignmentService
from rbac_console.application.services.role_service import RoleService

__all__ = [
    "ActivityLogService",
    "DashboardService",
    "PermissionResolver",
    "RoleAssignmentService",
    "RoleService",
    "group_permissions_by_module",
]
