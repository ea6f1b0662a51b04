"""
SQLAlchemy mixins for common model patterns.

    - CuidMixin: CUID primary key
    - CreatedAtMixin: creation timestamp only (append-only rows)
    - TimestampMixin: created_at + updated_at
"""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from rbac_console.shared.utils import generate_cuid, utc_now


class CuidMixin:
    """
    Mixin for models using CUID as primary key.

    Usage:
        class MyModel(CuidMixin, Base):
            __tablename__ = "my_model"
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class CreatedAtMixin:
    """Creation timestamp, set client-side so ordering is stable within a second"""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            nullable=False,
        )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin for timestamp tracking.

    Provides:
        - created_at: Timestamp set on creation
        - updated_at: Timestamp refreshed on every ORM update
    """

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            onupdate=utc_now,
            nullable=False,
        )
