from rbac_console.application.services import group_permissions_by_module


def test_groups_by_display_name_in_first_seen_order():
    permissions = [
        {"id": "p1", "module_display_name": "Content", "action": "read"},
        {"id": "p2", "module_display_name": "Blog", "action": "read"},
        {"id": "p3", "module_display_name": "Content", "action": "write"},
    ]

    grouped = group_permissions_by_module(permissions)

    assert list(grouped) == ["Content", "Blog"]
    assert [p["id"] for p in grouped["Content"]] == ["p1", "p3"]


def test_each_permission_lands_in_exactly_one_group():
    permissions = [
        {"id": "p1", "module_display_name": "Content"},
        {"id": "p2", "module_display_name": "Blog"},
    ]

    grouped = group_permissions_by_module(permissions)

    assert sum(len(group) for group in grouped.values()) == 2
    assert grouped["Blog"] == [{"id": "p2", "module_display_name": "Blog"}]


def test_empty_input():
    assert group_permissions_by_module([]) == {}
