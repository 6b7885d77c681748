"""Assemble the merged OpenAPI document of a project version from the database."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from apihub import get_db
from apihub.models.version import ProjectVersion, VersionAssociation
from apihub.services.documents import load_source_document
from apihub.services.spec_merger import Association, empty_document, merge_specs

logger = logging.getLogger(__name__)


def version_title(version: ProjectVersion) -> str:
    return f'{version.project.name} - {version.name}'


def build_version_document(version_id: int) -> Optional[Dict[str, Any]]:
    """Merged document for ``version_id``; None when the version does not exist.

    Each referenced spec is parsed once. A spec that fails to parse raises
    SpecParseError and fails the whole document.
    """
    session = get_db()
    version = session.execute(
        select(ProjectVersion).options(joinedload(ProjectVersion.project)).where(ProjectVersion.id==version_id)
    ).scalar_one_or_none()
    if not version or not version.project:
        return None
    title = version_title(version)
    rows = session.execute(
        select(VersionAssociation)
        .options(joinedload(VersionAssociation.api_spec))
        .where(VersionAssociation.version_id==version_id)
        .order_by(VersionAssociation.id.asc())
    ).scalars().all()
    if not rows:
        return empty_document(title, version.name)

    parsed: Dict[int, Any] = {}
    associations = []
    for row in rows:
        if row.api_spec is None:
            continue
        if row.api_spec_id not in parsed:
            parsed[row.api_spec_id] = load_source_document(row.api_spec.yaml)
        associations.append(Association(
            source_document_id=row.api_spec_id,
            endpoint_path=row.endpoint_path,
            endpoint_method=row.endpoint_method,
            document=parsed[row.api_spec_id],
        ))
    logger.debug('Version %s: %d associations over %d specs', version_id, len(associations), len(parsed))
    return merge_specs(associations, title=title, version=version.name)
