"""Immutable value types of the access-control model."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PermissionMap:
    """
    A user's effective permissions: module name -> resource -> set of actions.

    A module missing from the map means the user has no access to it.
    """

    grants: Mapping[str, Mapping[str, frozenset[str]]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "PermissionMap":
        return cls({})

    @classmethod
    def from_triples(cls, triples: Iterable[tuple[str, str, str]]) -> "PermissionMap":
        """Build a map from (module, resource, action) triples; duplicates collapse."""
        nested: dict[str, dict[str, set[str]]] = {}
        for module_name, resource, action in triples:
            nested.setdefault(module_name, {}).setdefault(resource, set()).add(action)
        return cls(
            {
                module_name: {res: frozenset(actions) for res, actions in resources.items()}
                for module_name, resources in nested.items()
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Iterable[str]]]) -> "PermissionMap":
        return cls(
            {
                module_name: {res: frozenset(actions) for res, actions in resources.items()}
                for module_name, resources in data.items()
            }
        )

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        """JSON-friendly form with sorted action lists."""
        return {
            module_name: {res: sorted(actions) for res, actions in resources.items()}
            for module_name, resources in self.grants.items()
        }

    def allows(self, module_name: str, resource: str, action: str) -> bool:
        return action in self.grants.get(module_name, {}).get(resource, frozenset())

    def has_module(self, module_name: str) -> bool:
        return module_name in self.grants

    def is_empty(self) -> bool:
        return not self.grants

    @property
    def modules(self) -> list[str]:
        return sorted(self.grants)


@dataclass(frozen=True)
class Page:
    """Offset pagination window."""

    page: int = 1
    per_page: int = 20

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.per_page < 1:
            raise ValueError("per_page must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page
