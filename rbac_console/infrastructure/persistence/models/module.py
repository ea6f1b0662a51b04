from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rbac_console.infrastructure.persistence.database import Base
from rbac_console.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class Module(CuidMixin, CreatedAtMixin, Base):
    """
    A functional area of the product (e.g. 'user_management', 'billing').

    Roles may be scoped to a module; permissions always belong to one.
    Inactive modules grant nothing at resolution time.
    """

    __tablename__ = "module"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
