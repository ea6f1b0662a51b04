from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from rbac_console.infrastructure.persistence.database import Base
from rbac_console.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class ActivityLog(CuidMixin, CreatedAtMixin, Base):
    """
    Append-only record of an administrative action.

    changes holds action-specific detail, e.g. {"old": {...}, "new": {...}}
    for updates or {"added": [...], "removed": [...], "total": n} for
    permission set changes.
    """

    __tablename__ = "activity_log"

    user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    module: Mapped[str | None] = mapped_column(String, nullable=True)
    resource_type: Mapped[str | None] = mapped_column(String, nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String, nullable=True)
    changes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index("ix_activity_log_created", "created_at"),
        Index("ix_activity_log_resource", "resource_type", "resource_id"),
    )
