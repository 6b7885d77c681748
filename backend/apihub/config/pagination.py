"""Pagination defaults shared by every list endpoint."""
from typing import Optional, Tuple

DEFAULT_LIMIT = 25
MAX_LIMIT = 100


def normalize_pagination(limit_raw: Optional[str], offset_raw: Optional[str], max_limit: int = MAX_LIMIT) -> Tuple[int, int]:
    """Coerce raw query values into a clamped (limit, offset) pair.

    Raises ValueError when either value is not an integer.
    """
    try:
        limit = DEFAULT_LIMIT if limit_raw in (None, '') else int(limit_raw)
        offset = 0 if offset_raw in (None, '') else int(offset_raw)
    except (TypeError, ValueError):
        raise ValueError('limit/offset must be int')
    return max(1, min(limit, max_limit)), max(0, offset)
