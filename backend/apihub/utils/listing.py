from __future__ import annotations
from typing import Any, Dict, Tuple, Iterable, Optional
from flask import request, abort, make_response
from sqlalchemy.orm import Query
from apihub.config.pagination import normalize_pagination
import hashlib
import json
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime, format_datetime

TIMESTAMP_TOLERANCE = timedelta(seconds=1)

def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return UTC tz-aware timestamp truncated to whole seconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.replace(microsecond=0)

def _iso(dt: datetime) -> str:
    return canonicalize_timestamp(dt).isoformat().replace('+00:00', 'Z')

def _http_date(dt: datetime) -> str:
    """RFC1123 HTTP-date string in GMT."""
    return format_datetime(canonicalize_timestamp(dt).astimezone(timezone.utc), usegmt=True)

def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset

def compute_etag(ids: Iterable[Any], total: int, limit: int, offset: int, latest_ts: Optional[str] = '') -> str:
    seed = f"{list(ids)}|{total}|{limit}|{offset}|{latest_ts or ''}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]

def document_etag(doc: Dict[str, Any]) -> str:
    """Content hash of a JSON-able document (key order independent)."""
    blob = json.dumps(doc, sort_keys=True, separators=(',', ':'), default=str).encode()
    return hashlib.sha256(blob).hexdigest()[:32]

def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }

def _set_validators(resp, etag: str, latest_ts: Optional[datetime]):
    resp.headers['ETag'] = etag
    if isinstance(latest_ts, datetime):
        resp.headers['Last-Modified'] = _http_date(latest_ts)
        resp.headers['X-Last-Modified-ISO'] = _iso(latest_ts)
    return resp

def make_cached_list_response(rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    ids = [r.get('id') for r in rows]
    latest_iso = _iso(latest_ts) if isinstance(latest_ts, datetime) else ''
    etag = compute_etag(ids, total, limit, offset, latest_iso)
    resp = make_response(build_list_payload(rows, total, limit, offset))
    return _set_validators(resp, etag, latest_ts), etag

def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    if not header_val:
        return None
    try:
        dt = datetime.fromisoformat(header_val.replace('Z', '+00:00'))
    except ValueError:
        try:
            dt = parsedate_to_datetime(header_val)
        except (TypeError, ValueError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def handle_conditional(etag_value: str, latest_ts: Optional[datetime]):
    """Evaluate conditional request headers.

    If-None-Match takes precedence over If-Modified-Since (RFC 9110).
    Returns a 304 response when the client copy is current, else None.
    """
    inm = request.headers.get('If-None-Match')
    if inm:
        if inm.strip().strip('"') == etag_value:
            return _set_validators(make_response('', 304), etag_value, latest_ts)
        return None
    ims_dt = _parse_if_modified_since(request.headers.get('If-Modified-Since', ''))
    if ims_dt and isinstance(latest_ts, datetime):
        if canonicalize_timestamp(latest_ts) <= canonicalize_timestamp(ims_dt) + TIMESTAMP_TOLERANCE:
            return _set_validators(make_response('', 304), etag_value, latest_ts)
    return None

def list_response(rows_json: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    """Paged list response with validators; body dropped for HEAD requests."""
    resp, etag = make_cached_list_response(rows_json, total, limit, offset, latest_ts)
    out = handle_conditional(etag, latest_ts) or resp
    if request.method == 'HEAD':
        out.set_data(b'')
    return out

def latest_timestamp(rows) -> Optional[datetime]:
    stamps = [r.updated_at for r in rows if isinstance(getattr(r, 'updated_at', None), datetime)]
    return max((canonicalize_timestamp(s) for s in stamps), default=None)
