"""Public documentation pages: per-project Swagger UI and merged version documents."""
from flask import Blueprint, abort, current_app, make_response
from markupsafe import escape
from sqlalchemy import select
from apihub import get_db
from apihub.models.project import Project
from apihub.models.version import ProjectVersion
from apihub.services.documents import SpecParseError
from apihub.services.version_docs import build_version_document
from apihub.utils.listing import document_etag, handle_conditional

docs_bp = Blueprint('docs', __name__)

SWAGGER_UI = 'https://unpkg.com/swagger-ui-dist@5'


def _docs_page(project: Project, versions) -> str:
    options = ''.join(f'<option value="{v.id}">{escape(v.name)}</option>' for v in versions)
    return (
        "<!DOCTYPE html><html lang=\"en\"><head><meta charset=\"UTF-8\">"
        f"<title>Documentation - {escape(project.name)}</title>"
        f"<link rel=\"stylesheet\" href=\"{SWAGGER_UI}/swagger-ui.css\" />"
        "<style>html,body{margin:0;padding:0;font-family:sans-serif}"
        ".topbar{background:#f0f0f0;padding:10px;border-bottom:1px solid #ddd;display:flex;align-items:center}"
        ".topbar h1{font-size:1.2em;margin:0}.topbar select{margin-left:20px;padding:5px}</style>"
        "</head><body>"
        f"<div class=\"topbar\"><h1>{escape(project.name)}</h1>"
        f"<select id=\"version-selector\"><option value=\"\">Select a version...</option>{options}</select></div>"
        "<div id=\"swagger-ui\"></div>"
        f"<script src=\"{SWAGGER_UI}/swagger-ui-bundle.js\" charset=\"UTF-8\"></script>"
        "<script>"
        "const selector=document.getElementById('version-selector');let ui;"
        "selector.addEventListener('change',(event)=>{const id=event.target.value;if(!id){return;}"
        "const url='/docs/versions/'+id;"
        "if(ui){ui.specActions.updateUrl(url);ui.specActions.download();}"
        "else{ui=SwaggerUIBundle({url:url,dom_id:'#swagger-ui'});}});"
        "</script></body></html>"
    )


@docs_bp.get('/<string:slug>')
def project_docs(slug: str):
    session = get_db()
    project = session.execute(select(Project).where(Project.slug==slug)).scalar_one_or_none()
    if not project:
        abort(404, description='project not found')
    versions = session.execute(
        select(ProjectVersion).where(ProjectVersion.project_id==project.id).order_by(ProjectVersion.name.desc())
    ).scalars().all()
    return _docs_page(project, versions)


@docs_bp.get('/versions/<int:version_id>')
def version_document(version_id: int):
    try:
        doc = build_version_document(version_id)
    except SpecParseError:
        current_app.logger.exception('Failed to build document for version %s', version_id)
        abort(500, description='could not generate the OpenAPI specification')
    if doc is None:
        abort(404, description='version not found')
    etag = document_etag(doc)
    cond = handle_conditional(etag, None)
    if cond:
        return cond
    resp = make_response(doc)
    resp.headers['ETag'] = etag
    return resp
