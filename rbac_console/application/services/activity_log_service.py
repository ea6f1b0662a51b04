"""Audit trail of administrative actions."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.domain.enums import ActivityAction
from rbac_console.infrastructure.config.settings import get_settings
from rbac_console.infrastructure.persistence.models.activity_log import ActivityLog
from rbac_console.infrastructure.persistence.repositories.activity_log_repo import ActivityLogRepository
from rbac_console.shared.context import get_actor_context
from rbac_console.shared.telemetry.logging import get_logger
from rbac_console.shared.utils import sanitize_log_context

logger = get_logger(__name__)


class ActivityLogService:
    """
    Appends activity log entries after a mutation has been committed.

    Recording is best-effort: a failure is logged and rolled back, never
    raised, so the mutation it describes still reports success.
    """

    def __init__(self, db: AsyncSession, repo: ActivityLogRepository | None = None):
        self.db = db
        self.repo = repo or ActivityLogRepository(db)
        self.default_module = get_settings().audit_module_name

    async def record(
        self,
        action: ActivityAction | str,
        resource_type: str,
        resource_id: str,
        changes: dict[str, Any] | None = None,
        module: str | None = None,
        actor_id: str | None = None,
    ) -> ActivityLog | None:
        """
        Write one entry in its own commit.

        The actor, IP address and user agent default to the request context.
        Returns the entry, or None when it could not be written.
        """
        actor = get_actor_context()
        action_value = action.value if isinstance(action, ActivityAction) else action
        entry = ActivityLog(
            user_id=actor_id or actor.user_id,
            action=action_value,
            module=module or self.default_module,
            resource_type=resource_type,
            resource_id=resource_id,
            changes=changes,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
        )
        try:
            created = await self.repo.create(entry)
            await self.db.commit()
            return created
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                f"Failed to record activity '{action_value}' for {resource_type} {resource_id}: {e}",
                extra={"context": sanitize_log_context({"action": action_value, "changes": changes})},
            )
            return None

    async def list_recent(self, user_id: str | None = None, limit: int = 50) -> list[ActivityLog]:
        return await self.repo.list_recent(user_id=user_id, limit=limit)
