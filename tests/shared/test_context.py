"""Tests for request actor context"""

from rbac_console.domain.enums import ActorType
from rbac_console.shared.context import (
    clear_current_user,
    get_actor_context,
    get_current_actor_id,
    set_current_user,
)


def test_defaults_to_system_actor():
    context = get_actor_context()

    assert context.user_id is None
    assert context.actor_type == ActorType.SYSTEM


def test_set_and_clear():
    set_current_user("user-1", ip_address="10.0.0.1", user_agent="pytest")

    assert get_current_actor_id() == "user-1"
    context = get_actor_context()
    assert context.actor_type == ActorType.USER
    assert context.ip_address == "10.0.0.1"
    assert context.user_agent == "pytest"

    clear_current_user()

    assert get_current_actor_id() is None


def test_authenticated_only_with_user():
    assert get_actor_context().is_authenticated is False

    actor = set_current_user("user-2")

    assert actor.is_authenticated is True
    assert get_actor_context() == actor
