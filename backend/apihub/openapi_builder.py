"""Deterministic OpenAPI description of the hub's own HTTP API.

Scope:
- Auth endpoints: /api/auth/login (POST), /api/auth/me (GET), /api/auth/status (GET)
- Projects and specs: list + create + single GET/PUT/DELETE, with caching headers on lists
- Versions and associations, per-spec endpoint listing and the public merged document
"""
from typing import Any, Dict

from .openapi_parts.constants import RESOURCES, SCHEMA_PROPERTIES, SORT_DETAILS, SORT_PARAM_MAP
from .openapi_parts.helpers import caching_headers, json_body, object_schema, path_param

__all__ = ["build_openapi_spec"]

ERR = {"400": {"$ref": "#/components/responses/BadRequest"}}
NOT_FOUND = {"404": {"$ref": "#/components/responses/NotFound"}}


def _resource_paths(schema_name: str, coll: str, id_param: str, read_perm: str, manage_perm: str) -> Dict[str, Any]:
    ref = f"#/components/schemas/{schema_name}"
    list_path = f"/api/{coll}"
    single_path = f"{list_path}/{{{id_param}}}"
    return {
        list_path: {
            "get": {
                "summary": f"List {coll}",
                "parameters": [
                    {"$ref": "#/components/parameters/LimitParam"},
                    {"$ref": "#/components/parameters/OffsetParam"},
                    {"$ref": f"#/components/parameters/{SORT_PARAM_MAP[schema_name]}"},
                ],
                "responses": {
                    "200": {
                        "description": "OK",
                        "headers": caching_headers(),
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "data": {"type": "array", "items": {"$ref": ref}},
                                        "pagination": {"$ref": "#/components/schemas/Pagination"},
                                    },
                                }
                            }
                        },
                    },
                    "304": {"description": "Not Modified"},
                    **ERR,
                },
                "x-required-permissions": [read_perm],
            },
            "post": {
                "summary": f"Create {schema_name}",
                "requestBody": json_body(ref),
                "responses": {"201": {"description": "Created", **json_body(ref)}, **ERR},
                "x-required-permissions": [manage_perm],
            },
        },
        single_path: {
            "parameters": [path_param(id_param)],
            "get": {
                "summary": f"Get {schema_name}",
                "responses": {"200": {"description": "OK", **json_body(ref)}, **NOT_FOUND},
                "x-required-permissions": [read_perm],
            },
            "put": {
                "summary": f"Update {schema_name}",
                "requestBody": json_body(ref),
                "responses": {"200": {"description": "OK", **json_body(ref)}, **ERR, **NOT_FOUND},
                "x-required-permissions": [manage_perm],
            },
            "delete": {
                "summary": f"Delete {schema_name}",
                "responses": {"204": {"description": "Deleted"}, **NOT_FOUND},
                "x-required-permissions": [manage_perm],
            },
        },
    }


def _version_paths() -> Dict[str, Any]:
    version_ref = "#/components/schemas/ProjectVersion"
    assoc_list = {
        "type": "object",
        "properties": {"data": {"type": "array", "items": {"$ref": "#/components/schemas/VersionAssociation"}}},
    }
    return {
        "/api/projects/{project_id}/versions": {
            "parameters": [path_param("project_id")],
            "get": {
                "summary": "List project versions",
                "responses": {"200": {"description": "OK"}, **NOT_FOUND},
                "x-required-permissions": ["HUB.VERSION.READ"],
            },
            "post": {
                "summary": "Create project version",
                "requestBody": json_body(version_ref),
                "responses": {"201": {"description": "Created", **json_body(version_ref)}, **ERR, **NOT_FOUND},
                "x-required-permissions": ["HUB.VERSION.MANAGE"],
            },
        },
        "/api/versions/{version_id}": {
            "parameters": [path_param("version_id")],
            "delete": {
                "summary": "Delete project version",
                "responses": {"204": {"description": "Deleted"}, **NOT_FOUND},
                "x-required-permissions": ["HUB.VERSION.MANAGE"],
            },
        },
        "/api/versions/{version_id}/associations": {
            "parameters": [path_param("version_id")],
            "get": {
                "summary": "List endpoint associations",
                "responses": {"200": {"description": "OK", "content": {"application/json": {"schema": assoc_list}}}, **NOT_FOUND},
                "x-required-permissions": ["HUB.VERSION.READ"],
            },
            "put": {
                "summary": "Replace endpoint associations",
                "requestBody": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/AssociationSelection"}}}},
                "responses": {"201": {"description": "Replaced"}, **ERR, **NOT_FOUND},
                "x-required-permissions": ["HUB.VERSION.MANAGE"],
            },
        },
        "/api/specs/{spec_id}/endpoints": {
            "parameters": [path_param("spec_id")],
            "get": {
                "summary": "List operations declared by a spec",
                "responses": {"200": {"description": "OK"}, **NOT_FOUND},
                "x-required-permissions": ["HUB.SPEC.READ"],
            },
        },
        "/docs/versions/{version_id}": {
            "parameters": [path_param("version_id")],
            "get": {
                "summary": "Merged OpenAPI document of a version",
                "security": [],
                "responses": {
                    "200": {"description": "OpenAPI document", "headers": {"ETag": {"schema": {"type": "string"}}}},
                    "304": {"description": "Not Modified"},
                    **NOT_FOUND,
                    "500": {"$ref": "#/components/responses/ServerError"},
                },
            },
        },
    }


def build_openapi_spec() -> Dict[str, Any]:
    schemas = {name: object_schema(name) for name in SCHEMA_PROPERTIES}
    schemas["AssociationSelection"] = {
        "type": "object",
        "properties": {
            "associations": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "api_spec_id": {"type": "integer"},
                        "endpoint_path": {"type": "string"},
                        "endpoint_method": {"type": "string"},
                    },
                    "required": ["api_spec_id", "endpoint_path", "endpoint_method"],
                },
            }
        },
        "required": ["associations"],
    }
    schemas["Pagination"] = {
        "type": "object",
        "properties": {
            "total": {"type": "integer"},
            "limit": {"type": "integer"},
            "offset": {"type": "integer"},
            "returned": {"type": "integer"},
        },
        "required": ["total", "limit", "offset", "returned"],
    }
    schemas["Error"] = {
        "type": "object",
        "properties": {
            "error": {
                "type": "object",
                "properties": {"status": {"type": "integer"}, "title": {"type": "string"}, "detail": {"type": "string"}},
            }
        },
        "required": ["error"],
    }
    error_body = json_body("#/components/schemas/Error")
    components: Dict[str, Any] = {
        "schemas": schemas,
        "responses": {
            "NotFound": {"description": "Not Found", **error_body},
            "BadRequest": {"description": "Bad Request", **error_body},
            "ServerError": {"description": "Internal Server Error", **error_body},
        },
        "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        "parameters": {
            "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 25}},
            "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
        },
    }
    for pname, desc in SORT_DETAILS.items():
        components["parameters"][pname] = {"name": "sort", "in": "query", "schema": {"type": "string"}, "description": desc}

    paths: Dict[str, Any] = {
        "/api/auth/login": {"post": {"summary": "Login", "security": [], "responses": {"200": {"description": "JWT issued"}, "401": {"description": "Invalid credentials"}}}},
        "/api/auth/me": {"get": {"summary": "Current user", "responses": {"200": {"description": "OK"}}}},
        "/api/auth/status": {"get": {"summary": "Authentication status", "security": [], "responses": {"200": {"description": "OK"}}}},
    }
    for resource in RESOURCES:
        paths.update(_resource_paths(*resource))
    paths.update(_version_paths())

    # operationIds & tags derived from the first meaningful path segment
    tag_names = set()
    for path, item in paths.items():
        segments = [s for s in path.split("/") if s and s != "api" and not s.startswith("{")]
        tag = segments[0].capitalize()
        rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "")
        for method, op in item.items():
            if method == "parameters":
                continue
            op["operationId"] = f"{method}_{rid}"
            op["tags"] = [tag]
        tag_names.add(tag)

    return {
        "openapi": "3.0.3",
        "info": {"title": "API Hub", "version": "0.1.0"},
        "paths": paths,
        "components": components,
        "security": [{"BearerAuth": []}],
        "tags": [{"name": n, "description": f"{n} endpoints"} for n in sorted(tag_names)],
    }
