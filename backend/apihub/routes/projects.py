from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, delete
from apihub import get_db
from apihub.models.project import Project
from apihub.models.version import ProjectVersion, VersionAssociation
from apihub.decorators.auth import require_permissions
from apihub.decorators.audit import audit_log
from apihub.utils.listing import apply_pagination, list_response, latest_timestamp
from apihub.utils.filters import apply_filters
from apihub.utils.sorting import apply_multi_sort
from apihub.utils.validation import require_fields, slugify

projects_bp = Blueprint('projects', __name__)


def _project_json(p: Project):
    return {
        'id': p.id,
        'name': p.name,
        'slug': p.slug,
        'description': p.description,
        'docs_url': f'/docs/{p.slug}',
    }


def _version_json(v: ProjectVersion):
    return {'id': v.id, 'project_id': v.project_id, 'name': v.name}


def _get_project_or_404(project_id: int) -> Project:
    p = get_db().execute(select(Project).where(Project.id==project_id)).scalar_one_or_none()
    if not p:
        abort(404, description='project not found')
    return p


def _prefetch_project(project_id: int):
    p = get_db().execute(select(Project).where(Project.id==project_id)).scalar_one_or_none()
    if not p:
        return {}
    return {'name': p.name, 'slug': p.slug, 'description': p.description}


def _assert_unique(session, name: str, slug: str, exclude_id: int = None):
    q = select(Project).where((Project.name==name) | (Project.slug==slug))
    if exclude_id is not None:
        q = q.where(Project.id!=exclude_id)
    if session.execute(q).scalars().first():
        abort(400, description='project name or slug exists')


@projects_bp.get('/projects')
@require_permissions('HUB.PROJECT.READ')
def list_projects():
    session = get_db()
    q = session.query(Project)
    filter_specs = {
        'name': {'op': lambda qu, v: qu.filter(Project.name.ilike(f'%{v}%'))},
        'slug': {'op': lambda qu, v: qu.filter(Project.slug==v)},
    }
    q = apply_filters(q, filter_specs, request.args)
    allowed = {
        'name': Project.name,
        'slug': Project.slug,
        'updated_at': Project.updated_at,
        'id': Project.id
    }
    q = apply_multi_sort(q, request.args.get('sort') or 'name', allowed, Project.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    return list_response([_project_json(p) for p in rows], total, limit, offset, latest_timestamp(rows))


@projects_bp.post('/projects')
@require_permissions('HUB.PROJECT.MANAGE')
@audit_log('PROJECT.CREATE', entity='Project', entity_id_key='id', meta_keys=['name', 'slug'])
def create_project():
    session = get_db()
    data = request.get_json(silent=True) or {}
    require_fields(data, 'name')
    name = str(data['name']).strip()
    slug = slugify(data.get('slug') or name)
    _assert_unique(session, name, slug)
    p = Project(name=name, slug=slug, description=data.get('description'))
    session.add(p); session.commit()
    return _project_json(p), 201


@projects_bp.get('/projects/<int:project_id>')
@require_permissions('HUB.PROJECT.READ')
def get_project(project_id: int):
    p = _get_project_or_404(project_id)
    body = _project_json(p)
    body['versions'] = [_version_json(v) for v in _project_versions(project_id)]
    return body


@projects_bp.put('/projects/<int:project_id>')
@require_permissions('HUB.PROJECT.MANAGE')
@audit_log('PROJECT.UPDATE', entity='Project', entity_id_key='id', diff_keys=['name', 'slug', 'description'], pre_fetch=lambda a, kw: _prefetch_project(kw.get('project_id')), meta_keys=['name'])
def update_project(project_id: int):
    session = get_db()
    p = _get_project_or_404(project_id)
    data = request.get_json(silent=True) or {}
    name = p.name
    if 'name' in data:
        if not data['name']:
            abort(400, description='name cannot be empty')
        name = str(data['name']).strip()
    slug = slugify(data['slug']) if data.get('slug') else p.slug
    _assert_unique(session, name, slug, exclude_id=p.id)
    p.name, p.slug = name, slug
    if 'description' in data:
        p.description = data['description']
    session.commit()
    return _project_json(p)


@projects_bp.delete('/projects/<int:project_id>')
@require_permissions('HUB.PROJECT.MANAGE')
@audit_log('PROJECT.DELETE', entity='Project', entity_id_arg='project_id', pre_fetch=lambda a, kw: _prefetch_project(kw.get('project_id')), snapshot_keys=['name'])
def delete_project(project_id: int):
    session = get_db()
    _get_project_or_404(project_id)
    version_ids = select(ProjectVersion.id).where(ProjectVersion.project_id==project_id)
    session.execute(delete(VersionAssociation).where(VersionAssociation.version_id.in_(version_ids)))
    session.execute(delete(ProjectVersion).where(ProjectVersion.project_id==project_id))
    session.execute(delete(Project).where(Project.id==project_id))
    session.commit()
    return '', 204


def _project_versions(project_id: int):
    return get_db().execute(
        select(ProjectVersion).where(ProjectVersion.project_id==project_id).order_by(ProjectVersion.name.asc(), ProjectVersion.id.asc())
    ).scalars().all()


@projects_bp.get('/projects/<int:project_id>/versions')
@require_permissions('HUB.VERSION.READ')
def list_versions(project_id: int):
    _get_project_or_404(project_id)
    return {'data': [_version_json(v) for v in _project_versions(project_id)]}


@projects_bp.post('/projects/<int:project_id>/versions')
@require_permissions('HUB.VERSION.MANAGE')
@audit_log('VERSION.CREATE', entity='ProjectVersion', entity_id_key='id', meta_keys=['project_id', 'name'])
def create_version(project_id: int):
    session = get_db()
    _get_project_or_404(project_id)
    data = request.get_json(silent=True) or {}
    require_fields(data, 'name')
    name = str(data['name']).strip()
    dup = session.execute(
        select(ProjectVersion).where(ProjectVersion.project_id==project_id, ProjectVersion.name==name)
    ).scalar_one_or_none()
    if dup:
        abort(400, description='version exists')
    v = ProjectVersion(project_id=project_id, name=name)
    session.add(v); session.commit()
    return _version_json(v), 201
