from __future__ import annotations
"""Audit logging decorator to reduce repetitive add_audit() calls in route handlers.

Usage examples:

@audit_log('ORDER.CREATE', entity='Order', entity_id_key='id', meta_keys=['status'])
def create_order():
    ... return row.to_json(), 201

@audit_log('ORDER.STATUS', entity='Order', entity_id_arg='order_id', diff_keys=['status'],
           pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')))
def change_status(order_id): ...

Parameters:
  action: required audit action code (e.g. ORDER.CREATE)
  entity: optional entity label (Order, User, TableConfig)
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: name of the view argument to use for entity_id (fallback if entity_id_key absent).
  meta_keys: list of keys to project from returned JSON into meta dict (shallow copy).
  diff_keys / pre_fetch: snapshot taken before the view runs; changed keys land in meta['changes'].

Only successful views are audited: an exception raised by the view propagates and
nothing is recorded.
"""

import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from orderboard import get_db
from orderboard.services.audit import add_audit

logger = logging.getLogger(__name__)


def _extract_payload(rv: Any):
    """Return the JSON-able dict of a view return value (dict or (dict, status[, headers]))."""
    if isinstance(rv, tuple) and rv:
        return rv[0]
    return rv


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before_snapshot = None
            if diff_keys and pre_fetch:
                try:
                    before_snapshot = pre_fetch(args, kwargs)
                except Exception:
                    logger.warning('Audit pre-fetch for %s failed', action, exc_info=True)
            rv = fn(*args, **kwargs)
            try:
                data = _extract_payload(rv)
                if not isinstance(data, dict):
                    data = {}
                entity_id = None
                if entity_id_key and entity_id_key in data:
                    entity_id = data.get(entity_id_key)
                elif entity_id_arg and entity_id_arg in kwargs:
                    entity_id = kwargs.get(entity_id_arg)
                meta = {k: data.get(k) for k in (meta_keys or []) if k in data}
                if diff_keys and isinstance(before_snapshot, dict):
                    changes = {}
                    for k in diff_keys:
                        if k in before_snapshot and k in data and before_snapshot.get(k) != data.get(k):
                            changes[k] = {'before': before_snapshot.get(k), 'after': data.get(k)}
                    if changes:
                        meta['changes'] = changes
                add_audit(action, entity, entity_id, meta)
                get_db().commit()
            except Exception:
                # the view has already committed its own write
                logger.exception('Audit write for %s failed', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
