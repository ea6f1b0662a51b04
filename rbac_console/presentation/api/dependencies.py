from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.application.results import OperationResult
from rbac_console.application.services import (
    ActivityLogService,
    DashboardService,
    PermissionResolver,
    RoleAssignmentService,
    RoleService,
)
from rbac_console.domain.enums import ActorType
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator
from rbac_console.infrastructure.persistence.database import get_db
from rbac_console.infrastructure.security.jwt import verify_token
from rbac_console.presentation.api.v1.schemas.token import TokenPayload
from rbac_console.shared.context import set_current_user

security = HTTPBearer()

# Global cache coordinator (singleton)
_cache_coordinator: CacheCoordinator | None = None

ERROR_STATUS = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "ROLE_IN_USE": status.HTTP_409_CONFLICT,
    "SUPER_ADMIN_FLOOR": status.HTTP_409_CONFLICT,
    "ROLE_ALREADY_ASSIGNED": status.HTTP_409_CONFLICT,
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "STORE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def get_cache_coordinator() -> CacheCoordinator:
    """
    Cache coordinator dependency (singleton)

    Initialized on app startup in main.py; falls back to the configured
    backend (unconnected) when startup has not run.
    """
    global _cache_coordinator
    if _cache_coordinator is None:
        _cache_coordinator = CacheCoordinator.from_settings()
    return _cache_coordinator


def set_cache_coordinator(cache: CacheCoordinator | None):
    """Set global cache coordinator (called on app startup)"""
    global _cache_coordinator
    _cache_coordinator = cache


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TokenPayload:
    """
    Validate JWT token and bind the actor to the request context.
    Token must contain a 'sub' (user_id) claim.
    """
    try:
        payload = verify_token(credentials.credentials)
        token_data = TokenPayload(**payload)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_current_user(
        token_data.sub,
        actor_type=ActorType.USER,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return token_data


async def get_permission_resolver(
    db: AsyncSession = Depends(get_db),
    cache: CacheCoordinator = Depends(get_cache_coordinator),
) -> PermissionResolver:
    return PermissionResolver(db, cache=cache)


async def get_role_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheCoordinator = Depends(get_cache_coordinator),
) -> RoleService:
    return RoleService(db, cache=cache)


async def get_role_assignment_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheCoordinator = Depends(get_cache_coordinator),
) -> RoleAssignmentService:
    return RoleAssignmentService(db, cache=cache)


async def get_activity_log_service(db: AsyncSession = Depends(get_db)) -> ActivityLogService:
    return ActivityLogService(db)


async def get_dashboard_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheCoordinator = Depends(get_cache_coordinator),
) -> DashboardService:
    return DashboardService(db, cache=cache)


async def require_super_admin(
    user: TokenPayload = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> TokenPayload:
    """Admin console gate: the caller must hold the super-admin role"""
    if not await resolver.is_super_admin(user.sub):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required",
        )
    return user


def unwrap(result: OperationResult):
    """Return the data of a successful result or raise the matching HTTP error"""
    if result.success:
        return result.data
    raise HTTPException(
        status_code=ERROR_STATUS.get(result.error_code or "", status.HTTP_400_BAD_REQUEST),
        detail={
            "error": result.error_code,
            "message": result.error,
            "details": result.details,
        },
    )
