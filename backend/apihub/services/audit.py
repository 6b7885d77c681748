from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity, get_jwt
from apihub import get_db
from apihub.models.audit import AuditLog

logger = logging.getLogger(__name__)


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit log entry in the current DB session.

    Parameters:
      action: short action code e.g. PROJECT.CREATE, SPEC.DELETE, VERSION.ASSOC.SET
      entity: optional entity name (Project, ApiSpec, ProjectVersion)
      entity_id: optional primary key
      meta: additional JSON-safe dictionary (shallow copied)
    """
    session = get_db()
    try:
        claims = get_jwt() or {}
        ident = get_jwt_identity()
    except RuntimeError:
        # outside a verified JWT request (scripts, tests)
        claims, ident = {}, None
    log = AuditLog(
        actor_user_id=int(ident) if ident is not None else 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        perms_snapshot={'perms': claims.get('perms', [])},
        meta=dict(meta or {}),
    )
    session.add(log)
    logger.debug('audit %s %s:%s', action, entity, entity_id)
    # No commit here; caller's transaction boundary controls durability.
    return log
