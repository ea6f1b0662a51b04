from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import DeclarativeBase

from rbac_console.domain.exceptions import ConstraintViolationError, StoreError
from rbac_console.infrastructure.config.settings import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict[str, Any]:
    """Pool and driver options for the configured backend"""
    if database_url.startswith("sqlite"):
        # SQLite pools do not accept sizing arguments
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 3600,
        "connect_args": (
            {
                "server_settings": {"jit": "off"},
                "command_timeout": 60,
            }
            if "postgresql" in database_url
            else {}
        ),
    }


# Create engine once at module level (not with lru_cache)
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


async def get_db():
    """
    Database session dependency.

    Services own their commits: every mutation commits once its guard checks
    pass, and the activity log is written in a commit of its own afterwards.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def commit_or_rollback(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit the session's pending work on success, roll it back on any error.

    Driver errors raised by the commit itself surface as StoreError, or
    ConstraintViolationError when a unique or foreign key was violated.
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConstraintViolationError(str(e), operation="commit") from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise StoreError(str(e), operation="commit") from e
    except Exception:
        await session.rollback()
        raise
