"""User, role and permission CRUD with their consistency rules.

Every mutation runs in one UnitOfWork: validation, row write, relation sync
and audit entry commit together or not at all.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import select, update

from app.constants.permissions import DEFAULT_GUARD
from app.errors import ConflictError, ValidationError
from app.models.authz import Permission, Role, RolePermission, User, UserRole
from app.models.product import Product
from app.services.audit import add_audit
from app.services.guards import ProtectedRows
from app.services.store import EntityStore
from app.services.unit_of_work import UnitOfWork
from app.utils.validation import FieldSpec, Schema, validate

logger = logging.getLogger(__name__)

PERMISSION_SCHEMA = Schema(
    Permission,
    FieldSpec('name', required=True, unique=True, max_length=125),
    FieldSpec('guard_name', max_length=125, default=DEFAULT_GUARD),
)

ROLE_SCHEMA = Schema(
    Role,
    FieldSpec('name', required=True, unique=True, max_length=125),
    FieldSpec('guard_name', max_length=125, default=DEFAULT_GUARD),
    FieldSpec('permissions', kind='list', stored=False),
)

_USER_FIELDS = (
    FieldSpec('name', required=True, max_length=255),
    FieldSpec('email', kind='email', required=True, unique=True, max_length=255),
    FieldSpec('roles', kind='list', stored=False),
)
USER_CREATE_SCHEMA = Schema(User, *_USER_FIELDS, FieldSpec('password', required=True, min_length=8, max_length=255, stored=False))
# blank password on update keeps the stored hash
USER_UPDATE_SCHEMA = Schema(User, *_USER_FIELDS, FieldSpec('password', min_length=8, max_length=255, stored=False))


def resolve_named(session, model, entries: Iterable, field_name: str) -> List[Any]:
    """Map a list of ids and/or names to rows of ``model``; unknown entries fail validation."""
    entries = list(entries or [])
    ids = {e for e in entries if isinstance(e, int)}
    names = {e for e in entries if isinstance(e, str)}
    found: Dict[int, Any] = {}
    if ids:
        for obj in session.execute(select(model).where(model.id.in_(list(ids)))).scalars():
            found[obj.id] = obj
    if names:
        for obj in session.execute(select(model).where(model.name.in_(list(names)))).scalars():
            found[obj.id] = obj
    missing = sorted(str(i) for i in ids - set(found)) + sorted(names - {o.name for o in found.values()})
    if missing:
        raise ValidationError({field_name: f'Unknown {field_name}: {", ".join(missing)}'})
    return list(found.values())


def sync_links(collection, targets: Iterable, key: str, factory):
    """Replace association rows so that ``collection`` links exactly ``targets``."""
    wanted = {t.id: t for t in targets}
    for link in list(collection):
        if getattr(link, key) in wanted:
            wanted.pop(getattr(link, key))
        else:
            collection.remove(link)
    for target in wanted.values():
        collection.append(factory(target))


def sync_role_permissions(session, role: Role, entries):
    perms = resolve_named(session, Permission, entries, 'permissions')
    sync_links(role.permissions, perms, 'permission_id', lambda p: RolePermission(permission=p))
    session.flush()


def sync_user_roles(session, user: User, entries):
    roles = resolve_named(session, Role, entries, 'roles')
    sync_links(user.user_roles, roles, 'role_id', lambda r: UserRole(role=r))
    session.flush()


# ---------------- Permissions ---------------- #

def create_permission(session, data, actor=None) -> Permission:
    with UnitOfWork(session, 'PERMISSION.CREATE'):
        values = validate(session, PERMISSION_SCHEMA, data)
        perm = EntityStore(session, Permission).insert(Permission(**values))
        add_audit(session, 'PERMISSION.CREATE', 'Permission', perm.id, {'name': perm.name}, actor=actor)
    return perm


def update_permission(session, permission_id: int, data, actor=None) -> Permission:
    store = EntityStore(session, Permission)
    with UnitOfWork(session, 'PERMISSION.UPDATE'):
        perm = store.find_or_fail(permission_id)
        before = perm.name
        values = validate(session, PERMISSION_SCHEMA, data, instance=perm)
        store.update(perm, values)
        add_audit(session, 'PERMISSION.UPDATE', 'Permission', perm.id, {'name': perm.name, 'previous_name': before}, actor=actor)
    return perm


def delete_permission(session, permission_id: int, actor=None):
    store = EntityStore(session, Permission)
    with UnitOfWork(session, 'PERMISSION.DELETE'):
        perm = store.find_or_fail(permission_id)
        in_use = store.count_where(RolePermission.permission_id, perm.id)
        if in_use:
            logger.info('refused delete of permission %s: used by %d roles', perm.name, in_use)
            raise ConflictError(f'Cannot delete permission in use by roles ({in_use} assigned)')
        store.delete(perm)
        add_audit(session, 'PERMISSION.DELETE', 'Permission', permission_id, {'name': perm.name}, actor=actor)


# ---------------- Roles ---------------- #

def create_role(session, data, actor=None) -> Role:
    with UnitOfWork(session, 'ROLE.CREATE'):
        values = validate(session, ROLE_SCHEMA, data)
        entries = values.pop('permissions')
        role = EntityStore(session, Role).insert(Role(is_system=False, **values))
        if entries:
            sync_role_permissions(session, role, entries)
        add_audit(session, 'ROLE.CREATE', 'Role', role.id, {'name': role.name, 'permissions': role.permission_names}, actor=actor)
    return role


def update_role(session, role_id: int, data, protected: ProtectedRows, actor=None) -> Role:
    store = EntityStore(session, Role)
    with UnitOfWork(session, 'ROLE.UPDATE'):
        role = store.find_or_fail(role_id)
        values = validate(session, ROLE_SCHEMA, data, instance=role)
        protected.assert_role_renamable(role, values['name'])
        entries = values.pop('permissions')
        store.update(role, values)
        # full replace: an omitted list clears the links
        sync_role_permissions(session, role, entries or [])
        add_audit(session, 'ROLE.UPDATE', 'Role', role.id, {'name': role.name, 'permissions': role.permission_names}, actor=actor)
    return role


def delete_role(session, role_id: int, protected: ProtectedRows, actor=None):
    store = EntityStore(session, Role)
    with UnitOfWork(session, 'ROLE.DELETE'):
        role = store.find_or_fail(role_id)
        protected.assert_role_deletable(role)
        name = role.name
        # role_has_permissions / model_has_roles rows go with it (delete-orphan)
        store.delete(role)
        add_audit(session, 'ROLE.DELETE', 'Role', role_id, {'name': name}, actor=actor)


# ---------------- Users ---------------- #

def create_user(session, data, actor=None) -> User:
    with UnitOfWork(session, 'USER.CREATE'):
        values = validate(session, USER_CREATE_SCHEMA, data)
        password = values.pop('password')
        entries = values.pop('roles')
        user = User(**values)
        user.set_password(password)
        EntityStore(session, User).insert(user)
        if entries:
            sync_user_roles(session, user, entries)
        add_audit(session, 'USER.CREATE', 'User', user.id, {'email': user.email}, actor=actor)
    return user


def update_user(session, user_id: int, data, actor=None) -> User:
    store = EntityStore(session, User)
    with UnitOfWork(session, 'USER.UPDATE'):
        user = store.find_or_fail(user_id)
        values = validate(session, USER_UPDATE_SCHEMA, data, instance=user)
        password = values.pop('password')
        entries = values.pop('roles')
        store.update(user, values)
        if password:
            user.set_password(password)
        sync_user_roles(session, user, entries or [])
        add_audit(session, 'USER.UPDATE', 'User', user.id, {
            'email': user.email,
            'password_changed': bool(password),
            'role_ids': sorted(ur.role_id for ur in user.user_roles),
        }, actor=actor)
    return user


def delete_user(session, user_id: int, protected: ProtectedRows, actor=None):
    store = EntityStore(session, User)
    with UnitOfWork(session, 'USER.DELETE'):
        user = store.find_or_fail(user_id)
        protected.assert_user_deletable(user)
        email = user.email
        user.user_roles.clear()
        session.flush()
        session.execute(update(Product).where(Product.user_id == user.id).values(user_id=None))
        store.delete(user)
        add_audit(session, 'USER.DELETE', 'User', user_id, {'email': email}, actor=actor)

__all__ = [
    'PERMISSION_SCHEMA', 'ROLE_SCHEMA', 'USER_CREATE_SCHEMA', 'USER_UPDATE_SCHEMA',
    'create_permission', 'update_permission', 'delete_permission',
    'create_role', 'update_role', 'delete_role',
    'create_user', 'update_user', 'delete_user',
    'resolve_named', 'sync_links',
]
