from __future__ import annotations
from typing import Optional, Tuple
from flask import request, abort, make_response
from sqlalchemy.orm import Query
from app.config.pagination import normalize_pagination
import hashlib
import json
from datetime import datetime

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    return dt.strftime(TIMESTAMP_FORMAT) if dt else None


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def compute_etag(rows: list, total: int, limit: int, offset: int) -> str:
    # derived fields such as product_count must change the tag too
    body = json.dumps(rows, sort_keys=True, default=str)
    seed = f"{body}|{total}|{limit}|{offset}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


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


def make_list_response(rows: list, total: int, limit: int, offset: int):
    """List envelope with an ETag; honours If-None-Match with a bare 304."""
    etag = compute_etag(rows, total, limit, offset)
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag:
        resp = make_response('', 304)
    else:
        resp = make_response(build_list_payload(rows, total, limit, offset))
    resp.headers['ETag'] = etag
    return resp

__all__ = ['format_timestamp', 'apply_pagination', 'compute_etag', 'build_list_payload', 'make_list_response']
