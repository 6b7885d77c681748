from __future__ import annotations
"""Request payload validation helpers with consistent 400 semantics."""
import re
from typing import Any, Iterable, Mapping
from flask import abort

_SLUG_STRIP = re.compile(r'[^a-z0-9]+')


def require_fields(data: Mapping[str, Any], *names: str) -> None:
    """Abort with 400 unless every name is present and non-empty in data."""
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        abort(400, description=f"{' & '.join(missing)} required")


def validate_choice(value: Any, allowed: Iterable[str], field_name: str) -> str:
    """Return value lower-cased if it is one of allowed, else abort with 400."""
    if not isinstance(value, str) or value.lower() not in allowed:
        abort(400, description=f"{field_name} invalid")
    return value.lower()


def slugify(value: str) -> str:
    """URL-safe, lower-case slug ('My API v2' -> 'my-api-v2')."""
    slug = _SLUG_STRIP.sub('-', (value or '').strip().lower()).strip('-')
    if not slug:
        abort(400, description='slug invalid')
    return slug

__all__ = ['require_fields', 'validate_choice', 'slugify']
