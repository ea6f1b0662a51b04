from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from rbac_console.infrastructure.persistence.database import Base
from rbac_console.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Role(CuidMixin, TimestampMixin, Base):
    """
    Named bundle of permissions (e.g., 'super_admin', 'editor').

    Inherits:
        - id: CUID primary key
        - created_at / updated_at: timestamps

    A NULL module_id makes the role global.
    """

    __tablename__ = "role"

    name: Mapped[str] = mapped_column(String, nullable=False)  # e.g., 'editor'
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    module_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("module.id", ondelete="CASCADE"), nullable=True, index=True
    )
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )  # System roles cannot be modified or deleted
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("name", "module_id", name="uq_role_name_module"),
        # NULL module_ids never collide above, so global names need their own index
        Index(
            "uq_role_name_global",
            "name",
            unique=True,
            postgresql_where=text("module_id IS NULL"),
            sqlite_where=text("module_id IS NULL"),
        ),
    )
