from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity, get_jwt
from orderboard import get_db
from orderboard.models.audit import AuditLog


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None, meta: Optional[Dict[str, Any]] = None, actor=None):
    """Persist an audit log entry within the current DB session.

    Parameters:
      action: short action code e.g. ORDER.CREATE, ORDER.STATUS, TABLE.HEADERS.SET
      entity: optional entity name (Order, TableConfig, User)
      entity_id: optional primary key string
      meta: additional JSON-safe dictionary (will be shallow copied)
      actor: ActorContext when known; otherwise the JWT identity of the request is used
    """
    session = get_db()
    actor_id = None
    actor_role = None
    if actor is not None:
        actor_id, actor_role = actor.user_id, actor.role
    else:
        try:
            actor_id = get_jwt_identity()
            actor_role = (get_jwt() or {}).get('role')
        except Exception:
            pass  # no JWT context (schema migration at boot, scripts) – system actor
    log = AuditLog(
        actor_user_id=actor_id or 'system',
        actor_role=actor_role,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
