from __future__ import annotations
"""Audit logging decorator for mutating route handlers.

Usage:

@audit_log('PROJECT.CREATE', entity='Project', entity_id_key='id', meta_keys=['name'])
def create_project():
    ... return {'id': p.id, 'name': p.name}, 201

@audit_log('PROJECT.DELETE', entity='Project', entity_id_arg='project_id',
           pre_fetch=lambda a, kw: _snapshot(kw['project_id']), snapshot_keys=['name'])
def delete_project(project_id): ...

Parameters:
  action: audit action code (e.g. SPEC.UPDATE)
  entity: entity label (Project, ApiSpec, ProjectVersion)
  entity_id_key: key in the returned JSON object holding the entity id
  entity_id_arg: view argument used as entity id when the payload lacks entity_id_key
  meta_keys: keys projected from the returned JSON into meta
  meta_builder: callable(data, rv, args, kwargs) -> dict, overrides meta_keys
  diff_keys: with pre_fetch, record before/after values that changed
  snapshot_keys: with pre_fetch, copy these pre-call values into meta (deletes return no body)

Only successful responses (status < 400) are audited. Failures inside the
audit path are logged and never alter the view's return value.
"""
import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from apihub.services.audit import add_audit
from apihub import get_db

logger = logging.getLogger(__name__)


def _extract_payload(rv: Any):
    """Return (data, status) from a Flask view return value."""
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    status = getattr(rv, 'status_code', 200)
    return rv, status


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, Any, tuple, dict], dict]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    snapshot_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before = pre_fetch(args, kwargs) if pre_fetch else None
            rv = fn(*args, **kwargs)
            data, status = _extract_payload(rv)
            if status >= 400:
                return rv
            try:
                data = data if isinstance(data, dict) else {}
                entity_id = data.get(entity_id_key) if entity_id_key else None
                if entity_id is None and entity_id_arg:
                    entity_id = kwargs.get(entity_id_arg)
                if meta_builder:
                    meta = meta_builder(data, rv, args, kwargs) or {}
                else:
                    meta = {k: data.get(k) for k in (meta_keys or []) if k in data}
                if isinstance(before, dict):
                    for k in snapshot_keys or []:
                        if k in before:
                            meta.setdefault(k, before[k])
                    changes = {
                        k: {'before': before.get(k), 'after': data.get(k)}
                        for k in diff_keys or []
                        if k in before and k in data and before.get(k) != data.get(k)
                    }
                    if changes:
                        meta['changes'] = changes
                add_audit(action, entity, entity_id, meta)
                get_db().commit()
            except Exception:
                logger.exception('Audit logging failed for %s', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
