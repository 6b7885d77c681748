from __future__ import annotations
from typing import Any, Dict, Mapping
from flask import abort

def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Mapping[str, Any]):
    """Apply declarative query-string filters.

    specs: { param_name: { 'op': callable(query, value)->query, 'coerce': callable (optional), 'validate': callable (optional) } }
    Empty or missing params are ignored; coercion/validation failures abort with 400.
    """
    for name, meta in specs.items():
        val = params.get(name)
        if val is None or val == '':
            continue
        coerce = meta.get('coerce')
        if coerce is not None:
            try:
                val = coerce(val)
            except (TypeError, ValueError):
                abort(400, description=f'{name} invalid')
        validate = meta.get('validate')
        if validate is not None and not validate(val):
            abort(400, description=f'{name} invalid')
        query = meta['op'](query, val)
    return query
