from abc import ABC
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Generic, ParamSpec, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from rbac_console.domain.exceptions import ConstraintViolationError, StoreError
from rbac_console.infrastructure.persistence.database import Base
from rbac_console.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
P = ParamSpec("P")
R = TypeVar("R")


def store_operation(name: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Re-raise any SQLAlchemy failure inside a repository method as StoreError.

    The driver message is kept for logs; no attempt is made to interpret it.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except IntegrityError as e:
                logger.warning(f"Store operation '{name}' hit a constraint: {e}")
                raise ConstraintViolationError(str(e), operation=name) from e
            except SQLAlchemyError as e:
                logger.error(f"Store operation '{name}' failed: {e}")
                raise StoreError(str(e), operation=name) from e

        return wrapper

    return decorator


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository implementing common CRUD operations.

    Repositories flush but never commit; the calling service owns the
    transaction boundary.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    @store_operation("get_by_id")
    async def get_by_id(self, id: str) -> ModelType | None:
        """Get a single record by ID"""
        # Cast to Any for SQLAlchemy dynamic attribute access (id comes from CuidMixin)
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == id))
        return result.scalar_one_or_none()

    @store_operation("count")
    async def count(self) -> int:
        """Total number of rows"""
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())

    @store_operation("create")
    async def create(self, obj: ModelType) -> ModelType:
        """Insert a new record and load server defaults"""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    @store_operation("update")
    async def update(self, obj: ModelType) -> ModelType:
        """
        Flush pending changes on a record.

        Handles potentially detached objects by merging back to session.
        """
        if object_session(obj) is None:
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    @store_operation("delete")
    async def delete(self, obj: ModelType) -> None:
        """Delete a record"""
        await self.db.delete(obj)
        await self.db.flush()
