"""Enumerations shared across the RBAC console."""

from enum import Enum


class ActorType(str, Enum):
    """Who performed an operation"""

    USER = "user"
    SYSTEM = "system"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [actor.value for actor in cls]


class ActivityAction(str, Enum):
    """Action names written to the activity log"""

    ROLE_CREATED = "role_created"
    ROLE_UPDATED = "role_updated"
    ROLE_DELETED = "role_deleted"
    ROLE_DUPLICATED = "role_duplicated"
    ROLE_PERMISSIONS_UPDATED = "role_permissions_updated"
    ROLE_ASSIGNED = "role_assigned"
    ROLE_REVOKED = "role_revoked"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [action.value for action in cls]


class CacheTag(str, Enum):
    """Invalidation tags for cached reads"""

    ROLES = "roles"
    USER_ROLES = "user_roles"
    ALL = "all"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [tag.value for tag in cls]


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
