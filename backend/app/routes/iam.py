from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from app.models.authz import User, Role, Permission
from app.models.audit import AuditLog
from sqlalchemy import select
from app import get_db
from app.services import iam as iam_service
from app.services.guards import protected_rows
from app.services.policy import compute_effective_permissions, current_auth
from app.services.store import EntityStore
from app.utils.filters import apply_filters
from app.utils.listing import apply_pagination, make_list_response, format_timestamp
from app.decorators.auth import require_permissions

iam_bp = Blueprint('iam', __name__)


def _permission_json(p: Permission):
    return {
        'id': p.id,
        'name': p.name,
        'guard_name': p.guard_name,
        'created_at': format_timestamp(p.created_at),
        'updated_at': format_timestamp(p.updated_at),
    }


def _role_json(r: Role):
    return {
        'id': r.id,
        'name': r.name,
        'guard_name': r.guard_name,
        'is_system': r.is_system,
        'permissions': [{'id': rp.permission.id, 'name': rp.permission.name} for rp in r.permissions],
        'created_at': format_timestamp(r.created_at),
        'updated_at': format_timestamp(r.updated_at),
    }


def _user_json(u: User, detailed: bool = False):
    body = {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'roles': [{'id': r.id, 'name': r.name} for r in u.roles],
        'created_at': format_timestamp(u.created_at),
        'updated_at': format_timestamp(u.updated_at),
    }
    if detailed:
        body['roles'] = [
            {'id': r.id, 'name': r.name, 'permissions': [{'id': rp.permission.id, 'name': rp.permission.name} for rp in r.permissions]}
            for r in u.roles
        ]
        body['permissions'] = compute_effective_permissions(u.id)['perms']
    return body


def _payload():
    data = request.get_json(silent=True)
    if data is None:
        abort(400, description='JSON body required')
    return data


def _name_filter(model):
    return {'name': {'op': lambda q, v: q.filter(model.name.ilike(f'%{v}%'))}}


# --- Auth ---

@iam_bp.post('/auth/login')
def login():
    data = request.get_json(silent=True) or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='invalid credentials')
    eff = compute_effective_permissions(user.id, session)
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims={'roles': eff['roles'], 'perms': eff['perms']})
    return {'access_token': token}


@iam_bp.get('/auth/me')
@jwt_required()
def me():
    user_id = int(get_jwt_identity())
    user = EntityStore(get_db(), User).find_or_fail(user_id)
    auth = current_auth()
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'roles': sorted(auth.role_ids),
        'perms': sorted(auth.permissions),
    }


# --- Permissions ---

@iam_bp.get('/permissions')
@require_permissions('role-list')
def list_permissions():
    session = get_db()
    q = apply_filters(session.query(Permission), _name_filter(Permission), request.args)
    paged_q, total, limit, offset = apply_pagination(q.order_by(Permission.id.desc()))
    return make_list_response([_permission_json(p) for p in paged_q.all()], total, limit, offset)


@iam_bp.post('/permissions')
@require_permissions('role-create')
def create_permission():
    perm = iam_service.create_permission(get_db(), _payload(), actor=current_auth())
    return _permission_json(perm), 201


@iam_bp.get('/permissions/<int:permission_id>')
@require_permissions('role-list')
def show_permission(permission_id: int):
    return {'permission': _permission_json(EntityStore(get_db(), Permission).find_or_fail(permission_id))}


@iam_bp.put('/permissions/<int:permission_id>')
@require_permissions('role-edit')
def update_permission(permission_id: int):
    perm = iam_service.update_permission(get_db(), permission_id, _payload(), actor=current_auth())
    return _permission_json(perm)


@iam_bp.delete('/permissions/<int:permission_id>')
@require_permissions('role-delete')
def delete_permission(permission_id: int):
    iam_service.delete_permission(get_db(), permission_id, actor=current_auth())
    return {'success': 'Permission deleted successfully'}


# --- Roles ---

@iam_bp.get('/roles')
@require_permissions('role-list')
def list_roles():
    session = get_db()
    q = apply_filters(session.query(Role), _name_filter(Role), request.args)
    paged_q, total, limit, offset = apply_pagination(q.order_by(Role.id.desc()))
    return make_list_response([_role_json(r) for r in paged_q.all()], total, limit, offset)


@iam_bp.post('/roles')
@require_permissions('role-create')
def create_role():
    role = iam_service.create_role(get_db(), _payload(), actor=current_auth())
    return _role_json(role), 201


@iam_bp.get('/roles/<int:role_id>')
@require_permissions('role-list')
def show_role(role_id: int):
    return {'role': _role_json(EntityStore(get_db(), Role).find_or_fail(role_id))}


@iam_bp.put('/roles/<int:role_id>')
@require_permissions('role-edit')
def update_role(role_id: int):
    role = iam_service.update_role(get_db(), role_id, _payload(), protected_rows(), actor=current_auth())
    return _role_json(role)


@iam_bp.delete('/roles/<int:role_id>')
@require_permissions('role-delete')
def delete_role(role_id: int):
    iam_service.delete_role(get_db(), role_id, protected_rows(), actor=current_auth())
    return {'success': 'Role deleted successfully'}


# --- Users ---

@iam_bp.get('/users')
@require_permissions('user-list')
def list_users():
    session = get_db()
    specs = dict(_name_filter(User))
    specs['email'] = {'op': lambda q, v: q.filter(User.email.ilike(f'%{v}%'))}
    q = apply_filters(session.query(User), specs, request.args)
    paged_q, total, limit, offset = apply_pagination(q.order_by(User.id.desc()))
    return make_list_response([_user_json(u) for u in paged_q.all()], total, limit, offset)


@iam_bp.post('/users')
@require_permissions('user-create')
def create_user():
    user = iam_service.create_user(get_db(), _payload(), actor=current_auth())
    return _user_json(user), 201


@iam_bp.get('/users/<int:user_id>')
@require_permissions('user-list')
def show_user(user_id: int):
    return {'user': _user_json(EntityStore(get_db(), User).find_or_fail(user_id), detailed=True)}


@iam_bp.put('/users/<int:user_id>')
@require_permissions('user-edit')
def update_user(user_id: int):
    user = iam_service.update_user(get_db(), user_id, _payload(), actor=current_auth())
    return _user_json(user)


@iam_bp.delete('/users/<int:user_id>')
@require_permissions('user-delete')
def delete_user(user_id: int):
    iam_service.delete_user(get_db(), user_id, protected_rows(), actor=current_auth())
    return {'success': 'User deleted successfully'}


# --- Audit Log Listing ---

@iam_bp.get('/audit/logs')
@require_permissions('audit-list')
def list_audit_logs():
    session = get_db()
    specs = {
        'action': {'op': lambda q, v: q.filter(AuditLog.action==v)},
        'entity': {'op': lambda q, v: q.filter(AuditLog.entity==v)},
        'entity_id': {'op': lambda q, v: q.filter(AuditLog.entity_id==v)},
        'actor_user_id': {'coerce': int, 'op': lambda q, v: q.filter(AuditLog.actor_user_id==v)},
    }
    q = apply_filters(session.query(AuditLog), specs, request.args)
    paged_q, total, limit, offset = apply_pagination(q.order_by(AuditLog.id.desc()))
    return make_list_response([r.to_json() for r in paged_q.all()], total, limit, offset)
