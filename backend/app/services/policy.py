"""Authorization resolver.

Grants are loaded eagerly into plain mappings (user -> role ids,
role -> permission names) and the effective permission set is computed from
those without touching the session again. An ``AuthContext`` carries that set
for the acting user and is passed explicitly into services.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Mapping, Optional
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy import select
from app.models.authz import Permission, RolePermission, User, UserRole
from app import get_db


@dataclass(frozen=True)
class UserGrants:
    user_id: Optional[int]
    role_ids: FrozenSet[int] = frozenset()
    role_permissions: Mapping[int, FrozenSet[str]] = field(default_factory=dict)


def load_grants(session, user_id: Optional[int]) -> UserGrants:
    """Load role assignments and role permissions for a user in two queries."""
    if user_id is None:
        return UserGrants(user_id=None)
    role_ids = frozenset(session.execute(select(UserRole.role_id).where(UserRole.user_id == user_id)).scalars())
    role_permissions: Dict[int, set] = {rid: set() for rid in role_ids}
    if role_ids:
        rows = session.execute(
            select(RolePermission.role_id, Permission.name)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(RolePermission.role_id.in_(list(role_ids)))
        ).all()
        for role_id, name in rows:
            role_permissions[role_id].add(name)
    return UserGrants(
        user_id=user_id,
        role_ids=role_ids,
        role_permissions={rid: frozenset(names) for rid, names in role_permissions.items()},
    )


def effective_permissions(grants: UserGrants) -> FrozenSet[str]:
    """Union of permission names across every role assigned to the user."""
    names = set()
    for role_id in grants.role_ids:
        names |= grants.role_permissions.get(role_id, frozenset())
    return frozenset(names)


class AuthContext:
    """Acting user plus their resolved permission set (computed once)."""

    def __init__(self, user_id: Optional[int], permissions: Iterable[str] = (), role_ids: Iterable[int] = ()):
        self.user_id = user_id
        self.permissions: FrozenSet[str] = frozenset(permissions)
        self.role_ids: FrozenSet[int] = frozenset(role_ids)

    @classmethod
    def anonymous(cls) -> 'AuthContext':
        return cls(None)

    @classmethod
    def for_user(cls, session, user_id: Optional[int]) -> 'AuthContext':
        if user_id is None or session.get(User, user_id) is None:
            return cls.anonymous()
        grants = load_grants(session, user_id)
        return cls(user_id, effective_permissions(grants), grants.role_ids)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def can(self, permission_name: Optional[str]) -> bool:
        if permission_name is None:
            return True
        return permission_name in self.permissions

    def __repr__(self):
        return f'<AuthContext user={self.user_id} perms={len(self.permissions)}>'


def compute_effective_permissions(user_id: int, session=None):
    session = session or get_db()
    grants = load_grants(session, user_id)
    return {
        'roles': sorted(grants.role_ids),
        'perms': sorted(effective_permissions(grants)),
    }


def current_auth() -> AuthContext:
    """Resolve the caller once per request; missing, invalid or unknown identity is anonymous."""
    if 'auth' not in g:
        try:
            verify_jwt_in_request(optional=True)
            identity = get_jwt_identity()
        except (JWTExtendedException, PyJWTError):
            # malformed or expired tokens count as no token
            identity = None
        user_id = None
        if identity is not None:
            try:
                user_id = int(identity)
            except (TypeError, ValueError):
                user_id = None
        g.auth = AuthContext.for_user(get_db(), user_id)
    return g.auth


def has_permissions(*names: str) -> bool:
    auth = current_auth()
    return all(auth.can(n) for n in names)
