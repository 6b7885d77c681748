"""Small fragment factories for the OpenAPI builder."""
from typing import Any, Dict

from .constants import SCHEMA_PROPERTIES


def object_schema(name: str) -> Dict[str, Any]:
    props = SCHEMA_PROPERTIES[name]
    return {
        "type": "object",
        "properties": {k: {"type": t} for k, t in props.items()},
        "required": ["id"],
    }


def caching_headers() -> Dict[str, Any]:
    return {
        "ETag": {"schema": {"type": "string"}},
        "Last-Modified": {"schema": {"type": "string"}},
        "X-Last-Modified-ISO": {"schema": {"type": "string"}},
    }


def json_body(ref: str) -> Dict[str, Any]:
    return {"content": {"application/json": {"schema": {"$ref": ref}}}}


def path_param(name: str) -> Dict[str, Any]:
    return {"name": name, "in": "path", "required": True, "schema": {"type": "integer"}}


__all__ = ["object_schema", "caching_headers", "json_body", "path_param"]
