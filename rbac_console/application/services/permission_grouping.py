"""Grouping of permissions for display."""

from collections.abc import Iterable, Mapping
from typing import Any


def group_permissions_by_module(
    permissions: Iterable[Mapping[str, Any]],
) -> dict[str, list[dict[str, Any]]]:
    """
    Group permission dicts under their module's display name.

    Input order is kept within each group and groups appear in order of
    first occurrence.
    """
    grouped: dict[str, list[dict[str, Any]]] = {}
    for permission in permissions:
        grouped.setdefault(permission["module_display_name"], []).append(dict(permission))
    return grouped
