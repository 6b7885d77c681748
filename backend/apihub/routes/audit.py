from flask import Blueprint, request
from apihub import get_db
from apihub.models.audit import AuditLog
from apihub.decorators.auth import require_permissions
from apihub.utils.filters import apply_filters
from apihub.utils.listing import apply_pagination, list_response

audit_bp = Blueprint('audit', __name__)


def _log_json(r: AuditLog):
    return {
        'id': r.id,
        'actor_user_id': r.actor_user_id,
        'action': r.action,
        'entity': r.entity,
        'entity_id': r.entity_id,
        'meta': r.meta,
        'created_at': r.created_at.isoformat() if r.created_at else None
    }


@audit_bp.get('/logs')
@require_permissions('ADMIN.AUDIT.READ')
def list_audit_logs():
    session = get_db()
    filter_specs = {
        'actor_user_id': {'coerce': int, 'op': lambda qu, v: qu.filter(AuditLog.actor_user_id==v)},
        'action': {'op': lambda qu, v: qu.filter(AuditLog.action==v)},
        'entity': {'op': lambda qu, v: qu.filter(AuditLog.entity==v)},
        'entity_id': {'op': lambda qu, v: qu.filter(AuditLog.entity_id==v)},
    }
    q = apply_filters(session.query(AuditLog), filter_specs, request.args)
    paged_q, total, limit, offset = apply_pagination(q.order_by(AuditLog.id.desc()))
    rows = paged_q.all()
    # newest record first: its timestamp drives Last-Modified
    latest_ts = rows[0].created_at if rows else None
    return list_response([_log_json(r) for r in rows], total, limit, offset, latest_ts)
