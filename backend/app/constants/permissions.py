"""Central definitions of permission names and role presets to avoid typos.
Permission names follow the ``<resource>-<action>`` token convention.
"""
from __future__ import annotations
from typing import List, Dict

RESOURCES = ['role', 'user', 'product', 'category']
ACTIONS = ['list', 'create', 'edit', 'delete']

# standalone permissions outside the resource/action grid
EXTRA_PERMISSIONS = ['audit-list']


def permission_name(resource: str, action: str) -> str:
    return f"{resource}-{action}"


def build_all_permission_names() -> List[str]:
    names: List[str] = []
    for res in RESOURCES:
        for act in ACTIONS:
            names.append(permission_name(res, act))
    return names + EXTRA_PERMISSIONS

ALL_PERMISSION_NAMES = build_all_permission_names()

ROLE_PRESETS: Dict[str, List[str]] = {
    'Admin': ['*'],
    'Manager': [
        'user-list', 'user-create', 'user-edit',
        'product-list', 'product-create', 'product-edit',
        'category-list', 'category-create', 'category-edit',
    ],
    'Editor': [
        'product-list', 'product-create', 'product-edit',
        'category-list', 'category-edit',
    ],
    'User': ['product-list', 'category-list'],
}

# roles seeded as system roles (protected regardless of configuration)
SYSTEM_ROLES = ('Admin',)
DEFAULT_GUARD = 'web'
