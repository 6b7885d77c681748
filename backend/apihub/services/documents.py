from __future__ import annotations
"""Parsing of stored spec text into source documents."""
from typing import Any, Dict, Optional

import yaml
from flask import abort


class SpecParseError(ValueError):
    """Raised when stored spec text is not a YAML/JSON mapping."""


TIMESTAMP_TAG = 'tag:yaml.org,2002:timestamp'


def _key_text(key: Any) -> str:
    if isinstance(key, bool):
        return 'true' if key else 'false'
    if key is None:
        return 'null'
    return str(key)


class SpecLoader(yaml.SafeLoader):
    """SafeLoader producing JSON-compatible documents.

    Mapping keys are always strings (``200:`` becomes ``'200'``) and
    timestamps stay plain strings.
    """

    def construct_mapping(self, node, deep=False):
        mapping = super().construct_mapping(node, deep=deep)
        return {_key_text(k): v for k, v in mapping.items()}


SpecLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_source_document(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse YAML (JSON included) text. Empty text yields None."""
    if not text or not text.strip():
        return None
    try:
        doc = yaml.load(text, Loader=SpecLoader)
    except yaml.YAMLError as e:
        raise SpecParseError(f'invalid YAML: {e}') from e
    if doc is None:
        return None
    if not isinstance(doc, dict):
        raise SpecParseError('document root must be a mapping')
    return doc


def validate_spec_text(text: Any) -> str:
    """Return ``text`` if it parses, else abort with 400."""
    if not isinstance(text, str) or not text.strip():
        abort(400, description='yaml required')
    try:
        load_source_document(text)
    except SpecParseError as e:
        abort(400, description=str(e))
    return text


__all__ = ['SpecParseError', 'load_source_document', 'validate_spec_text']
