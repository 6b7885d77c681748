from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, delete
from apihub import get_db
from apihub.models.api_spec import ApiSpec
from apihub.models.version import ProjectVersion, VersionAssociation
from apihub.decorators.auth import require_permissions
from apihub.decorators.audit import audit_log
from apihub.services.spec_merger import HTTP_METHODS
from apihub.utils.validation import validate_choice

versions_bp = Blueprint('versions', __name__)


def _association_json(a: VersionAssociation):
    return {
        'id': a.id,
        'version_id': a.version_id,
        'api_spec_id': a.api_spec_id,
        'endpoint_path': a.endpoint_path,
        'endpoint_method': a.endpoint_method,
    }


def _get_version_or_404(version_id: int) -> ProjectVersion:
    v = get_db().execute(select(ProjectVersion).where(ProjectVersion.id==version_id)).scalar_one_or_none()
    if not v:
        abort(404, description='version not found')
    return v


def _parse_associations(raw):
    """Validate the submitted selection; returns (api_spec_id, path, method) tuples."""
    if not isinstance(raw, list):
        abort(400, description='associations must be a list')
    out = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            abort(400, description=f'associations[{idx}] must be an object')
        spec_id = item.get('api_spec_id')
        path = item.get('endpoint_path')
        if not isinstance(spec_id, int) or isinstance(spec_id, bool):
            abort(400, description=f'associations[{idx}].api_spec_id invalid')
        if not isinstance(path, str) or not path.startswith('/'):
            abort(400, description=f'associations[{idx}].endpoint_path invalid')
        method = validate_choice(item.get('endpoint_method'), HTTP_METHODS, f'associations[{idx}].endpoint_method')
        key = (spec_id, path, method)
        if key not in out:
            out.append(key)
    return out


@versions_bp.delete('/versions/<int:version_id>')
@require_permissions('HUB.VERSION.MANAGE')
@audit_log('VERSION.DELETE', entity='ProjectVersion', entity_id_arg='version_id')
def delete_version(version_id: int):
    session = get_db()
    _get_version_or_404(version_id)
    session.execute(delete(VersionAssociation).where(VersionAssociation.version_id==version_id))
    session.execute(delete(ProjectVersion).where(ProjectVersion.id==version_id))
    session.commit()
    return '', 204


@versions_bp.get('/versions/<int:version_id>/associations')
@require_permissions('HUB.VERSION.READ')
def list_associations(version_id: int):
    session = get_db()
    _get_version_or_404(version_id)
    rows = session.execute(
        select(VersionAssociation).where(VersionAssociation.version_id==version_id).order_by(VersionAssociation.id.asc())
    ).scalars().all()
    return {'data': [_association_json(a) for a in rows]}


@versions_bp.route('/versions/<int:version_id>/associations', methods=['PUT', 'POST'])
@require_permissions('HUB.VERSION.MANAGE')
@audit_log('VERSION.ASSOC.SET', entity='ProjectVersion', entity_id_key='version_id', meta_builder=lambda data, rv, a, kw: {'count': len(data.get('data', []))})
def replace_associations(version_id: int):
    session = get_db()
    _get_version_or_404(version_id)
    data = request.get_json(silent=True) or {}
    selection = _parse_associations(data.get('associations') or [])
    spec_ids = {spec_id for spec_id, _, _ in selection}
    if spec_ids:
        found = set(session.execute(select(ApiSpec.id).where(ApiSpec.id.in_(spec_ids))).scalars())
        missing = spec_ids - found
        if missing:
            abort(400, description=f'Unknown spec ids: {sorted(missing)}')
    # Replace the whole selection in one transaction
    session.execute(delete(VersionAssociation).where(VersionAssociation.version_id==version_id))
    rows = [
        VersionAssociation(version_id=version_id, api_spec_id=spec_id, endpoint_path=path, endpoint_method=method)
        for spec_id, path, method in selection
    ]
    session.add_all(rows)
    session.commit()
    return {'version_id': version_id, 'data': [_association_json(a) for a in rows]}, 201
