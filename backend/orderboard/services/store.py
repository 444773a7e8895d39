"""Snapshot loaders and publishers for the order and table-config collections.

Every committed write to either collection is followed by a publish of the whole
collection so subscribed projections can replace their state in one step.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
from sqlalchemy import select

from ..constants.table import TABLE_CONFIG_ID, TOPIC_ORDERS, TOPIC_TABLE_CONFIG
from ..models.order import Order, TableConfig


def order_to_doc(o: Order) -> Dict[str, Any]:
    return {
        'id': o.id,
        'owner_id': o.owner_id,
        'owner_email': o.owner_email,
        'owner_display_name': o.owner_display_name,
        'owner_photo_base64': o.owner_photo_base64,
        'columns': list(o.columns) if isinstance(o.columns, list) else None,
        'status': o.status,
        'attachments': list(o.attachments) if isinstance(o.attachments, list) else None,
    }


def load_orders(session) -> List[Dict[str, Any]]:
    rows = session.execute(select(Order).order_by(Order.created_at.asc(), Order.id.asc()).execution_options(populate_existing=True)).scalars().all()
    return [order_to_doc(o) for o in rows]


def load_table_config(session) -> Optional[Dict[str, Any]]:
    cfg = session.get(TableConfig, TABLE_CONFIG_ID, populate_existing=True)
    if cfg is None:
        return None
    return {'headers': list(cfg.headers) if isinstance(cfg.headers, list) else cfg.headers}


def save_table_config(session, headers: List[str]) -> None:
    cfg = session.get(TableConfig, TABLE_CONFIG_ID, populate_existing=True)
    if cfg is None:
        session.add(TableConfig(id=TABLE_CONFIG_ID, headers=list(headers)))
    else:
        cfg.headers = list(headers)
    session.commit()


def publish_orders(session, feed) -> int:
    return feed.publish(TOPIC_ORDERS, load_orders(session))


def publish_table_config(session, feed) -> int:
    return feed.publish(TOPIC_TABLE_CONFIG, load_table_config(session))


__all__ = [
    'order_to_doc', 'load_orders', 'load_table_config', 'save_table_config',
    'publish_orders', 'publish_table_config',
]
