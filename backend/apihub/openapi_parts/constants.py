"""Resource registry for the hub's own OpenAPI description.

Tests depend on deterministic ordering and content.
"""
from typing import Dict, List, Tuple

# (SchemaName, collection path, id param, read permission, manage permission)
RESOURCES: List[Tuple[str, str, str, str, str]] = [
    ("Project", "projects", "project_id", "HUB.PROJECT.READ", "HUB.PROJECT.MANAGE"),
    ("ApiSpec", "specs", "spec_id", "HUB.SPEC.READ", "HUB.SPEC.MANAGE"),
]

SCHEMA_PROPERTIES: Dict[str, Dict[str, str]] = {
    "Project": {"id": "integer", "name": "string", "slug": "string", "description": "string", "docs_url": "string"},
    "ApiSpec": {"id": "integer", "name": "string", "yaml": "string"},
    "ProjectVersion": {"id": "integer", "project_id": "integer", "name": "string"},
    "VersionAssociation": {
        "id": "integer",
        "version_id": "integer",
        "api_spec_id": "integer",
        "endpoint_path": "string",
        "endpoint_method": "string",
    },
}

SORT_DETAILS = {
    "SortProjectsParam": "Multi-field sort (name,slug,updated_at,id). Prefix - for desc",
    "SortSpecsParam": "Multi-field sort (name,updated_at,id). Prefix - for desc",
}

SORT_PARAM_MAP = {
    "Project": "SortProjectsParam",
    "ApiSpec": "SortSpecsParam",
}

__all__ = [
    "RESOURCES",
    "SCHEMA_PROPERTIES",
    "SORT_DETAILS",
    "SORT_PARAM_MAP",
]
