"""Static navigation menu and the permission filter applied to it."""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import AbstractSet, List, Optional, Sequence


@dataclass(frozen=True)
class MenuEntry:
    label: str
    route: str
    icon: str
    required_permission: Optional[str] = None

    def to_json(self):
        return asdict(self)


MENU: Sequence[MenuEntry] = (
    MenuEntry('Dashboard', 'dashboard', 'home'),
    MenuEntry('Users', 'users.index', 'user', 'user-list'),
    MenuEntry('Roles', 'roles.index', 'shield', 'role-list'),
    # permissions share the role permission
    MenuEntry('Permissions', 'permissions.index', 'key', 'role-list'),
    MenuEntry('Products', 'products.index', 'package', 'product-list'),
    MenuEntry('Categories', 'categories.index', 'list', 'category-list'),
)


def filter_menu(entries: Sequence[MenuEntry], permissions: AbstractSet[str]) -> List[MenuEntry]:
    """Entries the holder of ``permissions`` may see, in declared order."""
    return [
        e for e in entries
        if e.required_permission is None or e.required_permission in permissions
    ]

__all__ = ['MenuEntry', 'MENU', 'filter_menu']
