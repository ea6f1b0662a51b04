from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.infrastructure.persistence.models.activity_log import ActivityLog
from rbac_console.infrastructure.persistence.repositories.base import BaseRepository, store_operation


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Append-only repository for the activity log"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ActivityLog)

    @store_operation("list_recent_activity")
    async def list_recent(self, user_id: str | None = None, limit: int = 50) -> list[ActivityLog]:
        """Newest entries first, optionally for one actor"""
        query = select(ActivityLog)
        if user_id:
            query = query.where(ActivityLog.user_id == user_id)
        query = query.order_by(ActivityLog.created_at.desc()).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())
