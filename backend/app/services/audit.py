from __future__ import annotations
from typing import Any, Dict, Optional
from app.models.audit import AuditLog


def add_audit(session, action: str, entity: Optional[str] = None, entity_id=None, meta: Optional[Dict[str, Any]] = None, actor=None):
    """Stage an audit log entry in ``session``.

    Parameters:
      action: short action code e.g. ROLE.CREATE, CATEGORY.DELETE, USER.UPDATE
      entity: optional entity name (Role, User, etc.)
      entity_id: optional primary key (stored as string)
      meta: additional JSON-safe dictionary (shallow copied)
      actor: AuthContext of the caller; anonymous/None is recorded as user 0
    """
    actor_id = getattr(actor, 'user_id', None)
    perms = sorted(getattr(actor, 'permissions', ()) or ())
    log = AuditLog(
        actor_user_id=actor_id or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        perms_snapshot={'perms': perms},
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; the caller's unit of work controls durability.
    return log
