"""Shared test fixtures for pytest"""
import os

# Settings are read once at import time; point them at an in-memory database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-rbac-console"
os.environ["CACHE_BACKEND"] = "memory"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from rbac_console.infrastructure.cache.coordinator import CacheCoordinator  # noqa: E402
from rbac_console.infrastructure.cache.memory_cache import MemoryCacheBackend  # noqa: E402
from rbac_console.infrastructure.persistence.database import Base, get_db  # noqa: E402
from rbac_console.infrastructure.persistence.models import (  # noqa: E402
    Module,
    Permission,
    Role,
    RolePermission,
    UserRole,
)
from rbac_console.infrastructure.security.jwt import create_access_token  # noqa: E402
from rbac_console.shared.context import clear_current_user  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_USER_ID = "admin-user"
REGULAR_USER_ID = "regular-user"


@pytest.fixture(autouse=True)
def reset_actor_context():
    """Every test starts (and ends) without an acting user"""
    clear_current_user()
    yield
    clear_current_user()


@pytest.fixture
async def test_engine():
    """In-memory SQLite engine with foreign keys enforced (ON DELETE CASCADE)"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    """Create test database session"""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def clock():
    """Controllable monotonic clock for cache expiry tests"""

    class FakeClock:
        def __init__(self):
            self.now = 1000.0

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float):
            self.now += seconds

    return FakeClock()


@pytest.fixture
def cache(clock):
    """Cache coordinator over a process-local backend"""
    return CacheCoordinator(MemoryCacheBackend(clock=clock))


@pytest.fixture
async def modules(test_db):
    """cms and blog are active; legacy is switched off"""
    rows = {
        "cms": Module(id="mod-cms", name="cms", display_name="Content"),
        "blog": Module(id="mod-blog", name="blog", display_name="Blog"),
        "legacy": Module(id="mod-legacy", name="legacy", display_name="Legacy", is_active=False),
    }
    test_db.add_all(rows.values())
    await test_db.commit()
    return rows


@pytest.fixture
async def permissions(test_db, modules):
    """Seeded permissions keyed by short name"""
    rows = {
        "article.read": Permission(id="perm.read", module_id="mod-cms", resource="article", action="read"),
        "article.write": Permission(id="perm.write", module_id="mod-cms", resource="article", action="write"),
        "article.publish": Permission(
            id="perm.publish", module_id="mod-cms", resource="article", action="publish"
        ),
        "post.read": Permission(id="perm.post.read", module_id="mod-blog", resource="post", action="read"),
        "report.view": Permission(
            id="perm.legacy.view", module_id="mod-legacy", resource="report", action="view"
        ),
    }
    test_db.add_all(rows.values())
    await test_db.commit()
    return rows


@pytest.fixture
async def super_admin_role(test_db, permissions):
    """System super-admin role holding every permission"""
    role = Role(
        id="role-super-admin",
        name="super_admin",
        display_name="Super Admin",
        is_system=True,
        priority=100,
    )
    test_db.add(role)
    await test_db.flush()
    test_db.add_all(
        [RolePermission(role_id=role.id, permission_id=p.id) for p in permissions.values()]
    )
    await test_db.commit()
    return role


@pytest.fixture
async def editor_role(test_db, modules):
    """Non-system role scoped to cms, without permissions"""
    role = Role(
        id="role-editor",
        name="editor",
        display_name="Editor",
        description="Edits content",
        module_id="mod-cms",
        priority=10,
    )
    test_db.add(role)
    await test_db.commit()
    return role


@pytest.fixture
def assign(test_db):
    """Insert an assignment directly, bypassing the service"""

    async def _assign(user_id: str, role_id: str, expires_at: datetime | None = None) -> UserRole:
        user_role = UserRole(user_id=user_id, role_id=role_id, expires_at=expires_at)
        test_db.add(user_role)
        await test_db.commit()
        return user_role

    return _assign


@pytest.fixture
async def admin_user(assign, super_admin_role):
    await assign(ADMIN_USER_ID, super_admin_role.id)
    return ADMIN_USER_ID


@pytest.fixture
def auth_headers(admin_user):
    """Bearer token for the super admin"""
    token = create_access_token(data={"sub": admin_user})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def regular_headers():
    """Bearer token for a user without roles"""
    token = create_access_token(data={"sub": REGULAR_USER_ID})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(test_db, cache):
    """HTTP client for API testing"""
    from rbac_console.main import app
    from rbac_console.presentation.api.dependencies import get_cache_coordinator

    async def override_get_db():
        yield test_db

    async def override_get_cache():
        return cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_coordinator] = override_get_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
