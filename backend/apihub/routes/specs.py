from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, delete
from apihub import get_db
from apihub.models.api_spec import ApiSpec
from apihub.models.version import VersionAssociation
from apihub.decorators.auth import require_permissions
from apihub.decorators.audit import audit_log
from apihub.services.documents import SpecParseError, load_source_document, validate_spec_text
from apihub.services.spec_merger import list_endpoints
from apihub.utils.listing import apply_pagination, list_response, latest_timestamp
from apihub.utils.filters import apply_filters
from apihub.utils.sorting import apply_multi_sort
from apihub.utils.validation import require_fields

specs_bp = Blueprint('specs', __name__)


def _spec_json(s: ApiSpec, include_yaml: bool = False):
    body = {'id': s.id, 'name': s.name}
    if include_yaml:
        body['yaml'] = s.yaml
    return body


def _get_spec_or_404(spec_id: int) -> ApiSpec:
    s = get_db().execute(select(ApiSpec).where(ApiSpec.id==spec_id)).scalar_one_or_none()
    if not s:
        abort(404, description='spec not found')
    return s


def _prefetch_spec(spec_id: int):
    s = get_db().execute(select(ApiSpec).where(ApiSpec.id==spec_id)).scalar_one_or_none()
    return {'name': s.name} if s else {}


@specs_bp.get('/specs')
@require_permissions('HUB.SPEC.READ')
def list_specs():
    session = get_db()
    q = session.query(ApiSpec)
    q = apply_filters(q, {'name': {'op': lambda qu, v: qu.filter(ApiSpec.name.ilike(f'%{v}%'))}}, request.args)
    allowed = {'name': ApiSpec.name, 'updated_at': ApiSpec.updated_at, 'id': ApiSpec.id}
    q = apply_multi_sort(q, request.args.get('sort') or 'name', allowed, ApiSpec.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    return list_response([_spec_json(s) for s in rows], total, limit, offset, latest_timestamp(rows))


@specs_bp.get('/specs/<int:spec_id>')
@require_permissions('HUB.SPEC.READ')
def get_spec(spec_id: int):
    return _spec_json(_get_spec_or_404(spec_id), include_yaml=True)


@specs_bp.post('/specs')
@require_permissions('HUB.SPEC.MANAGE')
@audit_log('SPEC.CREATE', entity='ApiSpec', entity_id_key='id', meta_keys=['name'])
def create_spec():
    session = get_db()
    data = request.get_json(silent=True) or {}
    require_fields(data, 'name', 'yaml')
    s = ApiSpec(name=str(data['name']).strip(), yaml=validate_spec_text(data['yaml']))
    session.add(s); session.commit()
    return _spec_json(s), 201


@specs_bp.put('/specs/<int:spec_id>')
@require_permissions('HUB.SPEC.MANAGE')
@audit_log('SPEC.UPDATE', entity='ApiSpec', entity_id_key='id', diff_keys=['name'], pre_fetch=lambda a, kw: _prefetch_spec(kw.get('spec_id')), meta_keys=['name'])
def update_spec(spec_id: int):
    session = get_db()
    s = _get_spec_or_404(spec_id)
    data = request.get_json(silent=True) or {}
    if 'name' in data:
        if not data['name']:
            abort(400, description='name cannot be empty')
        s.name = str(data['name']).strip()
    if 'yaml' in data:
        s.yaml = validate_spec_text(data['yaml'])
    session.commit()
    return _spec_json(s)


@specs_bp.delete('/specs/<int:spec_id>')
@require_permissions('HUB.SPEC.MANAGE')
@audit_log('SPEC.DELETE', entity='ApiSpec', entity_id_arg='spec_id', pre_fetch=lambda a, kw: _prefetch_spec(kw.get('spec_id')), snapshot_keys=['name'])
def delete_spec(spec_id: int):
    session = get_db()
    _get_spec_or_404(spec_id)
    session.execute(delete(VersionAssociation).where(VersionAssociation.api_spec_id==spec_id))
    session.execute(delete(ApiSpec).where(ApiSpec.id==spec_id))
    session.commit()
    return '', 204


@specs_bp.get('/specs/<int:spec_id>/endpoints')
@require_permissions('HUB.SPEC.READ')
def list_spec_endpoints(spec_id: int):
    s = _get_spec_or_404(spec_id)
    try:
        doc = load_source_document(s.yaml)
    except SpecParseError:
        current_app.logger.exception('Stored spec %s cannot be parsed', spec_id)
        abort(500, description='could not parse the stored specification')
    return {'endpoints': list_endpoints(doc)}
