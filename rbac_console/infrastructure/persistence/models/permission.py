from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from rbac_console.infrastructure.persistence.database import Base
from rbac_console.infrastructure.persistence.models.mixins import CuidMixin
from rbac_console.shared.utils import utc_now


class Permission(CuidMixin, Base):
    """
    Granular permission: an action on a resource within a module
    (e.g., 'user_management' / 'users' / 'create').

    Permissions are seeded and rarely modified, so no timestamps.
    """

    __tablename__ = "permission"

    module_id: Mapped[str] = mapped_column(
        String, ForeignKey("module.id", ondelete="CASCADE"), nullable=False
    )
    resource: Mapped[str] = mapped_column(String, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("module_id", "resource", "action", name="uq_permission_module_resource_action"),
    )


class RolePermission(Base):
    """Many-to-many: roles ←→ permissions."""

    __tablename__ = "role_permission"

    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True
    )
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), primary_key=True
    )
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )


class UserRole(Base):
    """
    Many-to-many: users ←→ roles.

    user_id is the identity provider's subject and has no local table.
    """

    __tablename__ = "user_role"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True
    )

    # Role assignment metadata
    assigned_by: Mapped[str | None] = mapped_column(String, nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # "metadata" is reserved on declarative classes
    assignment_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    __table_args__ = (
        Index("ix_user_role_role", "role_id"),
    )
