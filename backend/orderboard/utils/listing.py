from __future__ import annotations
from typing import Iterable, Tuple
from flask import request, abort, make_response
from sqlalchemy.orm import Query
import hashlib

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def normalize_pagination(limit_raw, offset_raw):
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else 0
    except ValueError:
        raise ValueError('limit/offset must be int')
    limit = max(1, min(limit, MAX_LIMIT))
    offset = max(0, offset)
    return limit, offset


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


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


def compute_etag(*parts: Iterable) -> str:
    seed = '|'.join(str(p) for p in parts)
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def quote_etag(etag: str) -> str:
    return '"%s"' % etag


def make_etag_response(body: dict, etag: str):
    resp = make_response(body)
    resp.headers['ETag'] = quote_etag(etag)
    return resp


def _if_none_match_tags(header_val: str):
    tags = set()
    for raw in header_val.split(','):
        tag = raw.strip()
        if tag.startswith('W/'):
            tag = tag[2:]
        tags.add(tag.strip('"'))
    return tags


def handle_conditional(etag_value: str):
    """Return a 304 response when If-None-Match carries the current snapshot tag, else None.

    Polling viewers send back the tag of the last snapshot they rendered; a match means
    nothing the tag was computed from has changed since.
    """
    inm = request.headers.get('If-None-Match')
    if inm and (inm.strip() == '*' or etag_value in _if_none_match_tags(inm)):
        resp = make_response('', 304)
        resp.headers['ETag'] = quote_etag(etag_value)
        return resp
    return None
