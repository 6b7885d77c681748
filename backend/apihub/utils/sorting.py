from __future__ import annotations
from flask import abort

def apply_multi_sort(query, sort_expr: str | None, allowed: dict, tie_breaker):
    """Order a query by a comma-separated sort expression.

    Tokens name keys of ``allowed`` (key -> column); a leading '-' sorts descending.
    ``tie_breaker`` is always appended so paging stays deterministic.
    Unknown keys abort with 400.
    """
    tokens = [t.strip() for t in (sort_expr or '').split(',') if t.strip()]
    clauses = []
    for token in tokens:
        desc = token.startswith('-')
        key = token.lstrip('-')
        col = allowed.get(key)
        if col is None:
            abort(400, description=f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tie_breaker.asc())
    return query.order_by(*clauses)
