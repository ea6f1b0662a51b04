"""
Acting-user context for the current request.

``get_current_user`` binds the caller once its bearer token checks out. The
activity log and the permission resolver read it back whenever no user id is
passed explicitly, so the id need not be threaded through every call.
Outside a request the actor is the system.
"""

from contextvars import ContextVar
from dataclasses import dataclass

from rbac_console.domain.enums import ActorType


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, and from where"""

    user_id: str | None = None
    actor_type: ActorType = ActorType.SYSTEM
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


SYSTEM_ACTOR = ActorContext()

_actor: ContextVar[ActorContext] = ContextVar("rbac_actor", default=SYSTEM_ACTOR)


def set_current_user(
    user_id: str | None,
    actor_type: ActorType = ActorType.USER,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> ActorContext:
    """Bind the acting user for the rest of the current task"""
    actor = ActorContext(
        user_id=user_id,
        actor_type=actor_type,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    _actor.set(actor)
    return actor


def clear_current_user() -> None:
    _actor.set(SYSTEM_ACTOR)


def get_current_actor_id() -> str | None:
    return _actor.get().user_id


def get_actor_context() -> ActorContext:
    return _actor.get()
