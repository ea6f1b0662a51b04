"""
Domain exceptions for the RBAC console.

These represent violations of the access-control model's rules and failures of
the underlying store. They carry a machine-readable ``error_code`` and a
``details`` mapping so callers can explain a rejection without parsing text.
"""

from typing import Any


class RbacException(Exception):
    """
    Base exception for all RBAC console errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(RbacException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(RbacException):
    """A referenced role, module, permission or assignment does not exist."""

    def __init__(self, resource_type: str, resource_id: str | list[str]):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ForbiddenError(RbacException):
    """Attempted mutation of a system-protected role."""

    def __init__(self, message: str, role_id: str | None = None):
        details = {"role_id": role_id} if role_id else {}
        super().__init__(message, "FORBIDDEN", details)


class ConflictError(RbacException):
    """An operation would break an invariant of the access-control model."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)


class RoleInUseError(ConflictError):
    """Role cannot be deleted while users are assigned to it."""

    def __init__(self, role_id: str, user_count: int):
        self.user_count = user_count
        super().__init__(
            f"Cannot delete role. {user_count} user(s) have this role assigned.",
            "ROLE_IN_USE",
            {"role_id": role_id, "user_count": user_count},
        )


class SuperAdminFloorError(ConflictError):
    """The super-admin role would be left without any permission."""

    def __init__(self, role_name: str):
        super().__init__(
            f"Cannot remove all permissions from {role_name} role",
            "SUPER_ADMIN_FLOOR",
            {"role_name": role_name},
        )


class RoleAlreadyAssignedError(ConflictError):
    """The user already holds the role."""

    def __init__(self, user_id: str, role_id: str):
        super().__init__(
            "User already has this role",
            "ROLE_ALREADY_ASSIGNED",
            {"user_id": user_id, "role_id": role_id},
        )


class StoreError(RbacException):
    """Underlying data-store failure."""

    def __init__(self, message: str, operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, "STORE_ERROR", details)


class ConstraintViolationError(StoreError):
    """A write broke a unique or foreign-key constraint of the store."""


class PermissionDeniedError(RbacException):
    """Permission denied - caller lacks the required permission."""

    def __init__(
        self,
        message: str = "Permission denied",
        resource: str | None = None,
        action: str | None = None,
    ):
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)
