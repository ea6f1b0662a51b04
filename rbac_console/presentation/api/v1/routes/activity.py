from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rbac_console.application.schemas import ActivityLogRead
from rbac_console.application.services import ActivityLogService, DashboardService
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator
from rbac_console.presentation.api.dependencies import (
    get_activity_log_service,
    get_cache_coordinator,
    get_dashboard_service,
    require_super_admin,
)

router = APIRouter(dependencies=[Depends(require_super_admin)])


@router.get("/activity", response_model=list[ActivityLogRead])
async def list_activity(
    service: Annotated[ActivityLogService, Depends(get_activity_log_service)],
    user_id: str | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
):
    """Most recent activity log entries, optionally for one actor"""
    return await service.list_recent(user_id=user_id, limit=limit)


@router.get("/dashboard/stats")
async def dashboard_stats(
    service: Annotated[DashboardService, Depends(get_dashboard_service)],
    cache: Annotated[CacheCoordinator, Depends(get_cache_coordinator)],
):
    """Console totals plus cache statistics"""
    return {
        "stats": await service.get_dashboard_stats(),
        "cache": await cache.stats(),
    }
