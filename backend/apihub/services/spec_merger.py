"""Merge selected operations from several OpenAPI documents into one.

A documentation version is a list of associations, each naming one
(path, method) pair of one source document. The merged document carries
exactly those operations plus every component they reach through
``$ref`` chains, with tags and servers of the contributing documents
deduplicated.

Component references are resolved globally: the first source document
(in association order) defining ``components.<type>.<name>`` wins, even
when another document defines a different component under the same name.
"""
from __future__ import annotations

import copy
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

OPENAPI_VERSION = '3.0.0'
HTTP_METHODS = ('get', 'put', 'post', 'delete', 'options', 'head', 'patch', 'trace')
COMPONENT_REF_PREFIX = '#/components/'
DEFAULT_DESCRIPTION = 'Consolidated documentation generated by the API Hub.'
EMPTY_DESCRIPTION = 'No endpoints are associated with this version.'


@dataclass(frozen=True)
class Association:
    source_document_id: Any
    endpoint_path: str
    endpoint_method: str
    document: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)


def collect_refs(value: Any, refs: Set[str]) -> None:
    """Add every string ``$ref`` reachable inside ``value`` to ``refs``."""
    if isinstance(value, dict):
        for key, item in value.items():
            if key == '$ref' and isinstance(item, str):
                refs.add(item)
            else:
                collect_refs(item, refs)
    elif isinstance(value, list):
        for item in value:
            collect_refs(item, refs)


def _unescape(token: str) -> str:
    return token.replace('~1', '/').replace('~0', '~')


def parse_component_ref(ref: str) -> Optional[Tuple[str, str]]:
    """Return ``(type, name)`` for ``#/components/<type>/<name>[/...]`` refs, else None."""
    if not isinstance(ref, str) or not ref.startswith(COMPONENT_REF_PREFIX):
        return None
    parts = ref[len(COMPONENT_REF_PREFIX):].split('/')
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return _unescape(parts[0]), _unescape(parts[1])


def list_endpoints(document: Optional[Dict[str, Any]]) -> List[Dict[str, str]]:
    """List the (path, method) pairs of a source document, HTTP verbs only."""
    endpoints: List[Dict[str, str]] = []
    paths = (document or {}).get('paths') if isinstance(document, dict) else None
    if not isinstance(paths, dict):
        return endpoints
    for path, item in paths.items():
        if not isinstance(item, dict):
            continue
        for method in item:
            if isinstance(method, str) and method.lower() in HTTP_METHODS:
                endpoints.append({'path': path, 'method': method.lower()})
    return endpoints


class ComponentResolver:
    """First-match-wins component lookup across ordered source documents."""

    def __init__(self, documents: Iterable[Dict[str, Any]]):
        self.documents = [d for d in documents if isinstance(d, dict)]
        self._cache: Dict[Tuple[str, str], Optional[Any]] = {}

    def _candidates(self, ctype: str, name: str) -> List[Any]:
        found = []
        for doc in self.documents:
            components = doc.get('components')
            if not isinstance(components, dict):
                continue
            bucket = components.get(ctype)
            if isinstance(bucket, dict) and bucket.get(name) is not None:
                found.append(bucket[name])
        return found

    def lookup(self, ctype: str, name: str) -> Optional[Any]:
        key = (ctype, name)
        if key not in self._cache:
            candidates = self._candidates(ctype, name)
            if any(c != candidates[0] for c in candidates[1:]):
                logger.warning(
                    'Component %s/%s is defined differently by %d source documents; using the first',
                    ctype, name, len(candidates),
                )
            self._cache[key] = candidates[0] if candidates else None
        return self._cache[key]

    def resolve(self, ref: str) -> Optional[Any]:
        parsed = parse_component_ref(ref)
        if parsed is None:
            return None
        return self.lookup(*parsed)


def resolve_closure(seed_refs: Iterable[str], resolver: ComponentResolver) -> List[str]:
    """Return all refs reachable from ``seed_refs``, in discovery order.

    Each ref is expanded at most once, so the walk ends after visiting every
    distinct ref string present in the source documents.
    """
    visited: List[str] = []
    seen: Set[str] = set()
    pending: deque = deque()
    for ref in sorted(set(seed_refs)):
        seen.add(ref)
        pending.append(ref)
    while pending:
        ref = pending.popleft()
        visited.append(ref)
        definition = resolver.resolve(ref)
        if definition is None:
            continue
        found: Set[str] = set()
        collect_refs(definition, found)
        for nxt in sorted(found - seen):
            seen.add(nxt)
            pending.append(nxt)
    return visited


def empty_document(title: str, version: str, description: str = EMPTY_DESCRIPTION) -> Dict[str, Any]:
    return {
        'openapi': OPENAPI_VERSION,
        'info': {'title': title, 'version': version, 'description': description},
        'paths': {},
    }


def _dedupe(items: List[Any], key: str) -> List[Any]:
    """First occurrence per ``item[key]``; entries without a string marker are dropped."""
    seen = set()
    out = []
    for item in items:
        marker = item.get(key) if isinstance(item, dict) else None
        if not isinstance(marker, str) or marker in seen:
            continue
        seen.add(marker)
        out.append(item)
    return out


def merge_specs(
    associations: Iterable[Association],
    title: str,
    version: str,
    description: str = DEFAULT_DESCRIPTION,
) -> Dict[str, Any]:
    """Build one OpenAPI document from the operations named by ``associations``.

    Associations whose path or method is missing from their document are
    skipped. When nothing is left the placeholder from ``empty_document`` is
    returned. Source documents are never mutated.
    """
    associations = list(associations)
    source_docs: Dict[Any, Dict[str, Any]] = {}
    for assoc in associations:
        if assoc.source_document_id not in source_docs and isinstance(assoc.document, dict):
            source_docs[assoc.source_document_id] = assoc.document

    paths: Dict[str, Dict[str, Any]] = {}
    used_tags: Set[str] = set()
    seed_refs: Set[str] = set()
    for assoc in associations:
        doc = source_docs.get(assoc.source_document_id)
        method = (assoc.endpoint_method or '').lower()
        if doc is None or method not in HTTP_METHODS:
            continue
        doc_paths = doc.get('paths')
        path_item = doc_paths.get(assoc.endpoint_path) if isinstance(doc_paths, dict) else None
        operation = path_item.get(method) if isinstance(path_item, dict) else None
        if not isinstance(operation, dict):
            continue
        paths.setdefault(assoc.endpoint_path, {})[method] = copy.deepcopy(operation)
        for tag in operation.get('tags') or []:
            if isinstance(tag, str):
                used_tags.add(tag)
        collect_refs(operation, seed_refs)

    if not paths:
        logger.debug('No operation resolved from %d associations', len(associations))
        return empty_document(title, version)

    resolver = ComponentResolver(source_docs.values())
    all_refs = resolve_closure(seed_refs, resolver)

    tags: List[Any] = []
    servers: List[Any] = []
    for doc in source_docs.values():
        if isinstance(doc.get('servers'), list):
            servers.extend(copy.deepcopy(doc['servers']))
        for tag in doc.get('tags') or []:
            if isinstance(tag, dict) and isinstance(tag.get('name'), str) and tag['name'] in used_tags:
                tags.append(copy.deepcopy(tag))

    components: Dict[str, Dict[str, Any]] = {}
    for ref in all_refs:
        parsed = parse_component_ref(ref)
        if parsed is None:
            continue
        definition = resolver.lookup(*parsed)
        if definition is None:
            continue
        ctype, name = parsed
        components.setdefault(ctype, {})[name] = copy.deepcopy(definition)

    logger.debug(
        'Merged %d paths from %d source documents (%d refs, %d components)',
        len(paths), len(source_docs), len(all_refs), sum(len(v) for v in components.values()),
    )
    return {
        'openapi': OPENAPI_VERSION,
        'info': {'title': title, 'version': version, 'description': description},
        'paths': paths,
        'components': components,
        'tags': _dedupe(tags, 'name'),
        'servers': _dedupe(servers, 'url'),
    }


__all__ = [
    'Association', 'ComponentResolver', 'HTTP_METHODS', 'OPENAPI_VERSION',
    'collect_refs', 'empty_document', 'list_endpoints', 'merge_specs',
    'parse_component_ref', 'resolve_closure',
]
