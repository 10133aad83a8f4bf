#!/usr/bin/env python
"""Idempotent seed script for permissions, role presets and the initial admin user.

Usage:
    python backend/scripts/seed_authz.py               # seed normally
    python backend/scripts/seed_authz.py --show-roles  # print role -> permission counts (after ensuring seed)
    python backend/scripts/seed_authz.py --dry-run     # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from app import create_app, get_db  # type: ignore
from app.models.authz import Base, Permission, Role, RolePermission, User, UserRole
from app.constants.permissions import ALL_PERMISSION_NAMES, ROLE_PRESETS, SYSTEM_ROLES, DEFAULT_GUARD
import app.models.category  # noqa: F401
import app.models.product  # noqa: F401
import app.models.audit  # noqa: F401


def ensure_permissions(session):
    existing = set(session.execute(select(Permission.name)).scalars().all())
    created = 0
    for name in ALL_PERMISSION_NAMES:
        if name not in existing:
            session.add(Permission(name=name, guard_name=DEFAULT_GUARD))
            created += 1
    session.flush()
    return created


def ensure_roles(session):
    existing_roles = {r.name: r for r in session.execute(select(Role)).scalars().all()}
    created = 0
    for role_name in ROLE_PRESETS:
        if role_name not in existing_roles:
            role = Role(name=role_name, guard_name=DEFAULT_GUARD, is_system=role_name in SYSTEM_ROLES)
            session.add(role)
            existing_roles[role_name] = role
            created += 1
    session.flush()

    perms_map = {p.name: p for p in session.execute(select(Permission)).scalars()}
    for role_name, raw_names in ROLE_PRESETS.items():
        role = existing_roles[role_name]
        desired = set(perms_map) if '*' in raw_names else set(raw_names)
        current = {rp.permission.name for rp in role.permissions}
        for name in sorted(desired - current):
            if name not in perms_map:
                print(f"[WARN] Missing permission referenced by role {role_name}: {name}")
                continue
            role.permissions.append(RolePermission(permission=perms_map[name]))
    session.flush()
    return created


def ensure_initial_admin(session):
    admin_role = session.execute(select(Role).where(Role.name=='Admin')).scalar_one_or_none()
    if not admin_role:
        print('[WARN] Admin role missing; skipping admin user creation')
        return
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    existing_admin = session.execute(select(User).where(User.email==admin_email)).scalar_one_or_none()
    if existing_admin:
        return
    user = User(name='Admin', email=admin_email, password_hash='')
    user.set_password(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'))
    session.add(user)
    session.flush()
    session.add(UserRole(user_id=user.id, role_id=admin_role.id))
    print(f"[INFO] Created initial admin user {admin_email} (id={user.id}) with temporary password.")


def print_role_summary(session):
    rows = []
    for role in session.execute(select(Role).order_by(Role.id)).scalars().all():
        rows.append((role.name, len(role.permissions), role.permission_names[:8]))
    if not rows:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for name, cnt, sample in rows:
        print(f"{name.ljust(name_w)} | {str(cnt).rjust(5)} | {', '.join(sample)}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed RBAC permissions, roles and admin user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_authz.py\n  dry run: seed_authz.py --dry-run\n  show roles: seed_authz.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM permissions LIMIT 1'))
        except Exception:
            # bootstrap schema when migrations have not been run; prefer `alembic upgrade head`
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        try:
            created_p = ensure_permissions(session)
            created_r = ensure_roles(session)
            ensure_initial_admin(session)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Permissions would create: {created_p}, Roles would create: {created_r}")
            else:
                session.commit()
                print(f"[DONE] Permissions created: {created_p}, Roles created: {created_r}")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

if __name__ == '__main__':
    main()
