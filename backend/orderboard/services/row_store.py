"""Row store adapter: the local projection of the `orders` collection.

Every inbound snapshot is normalized against the latest known headers before it is
exposed: short column arrays are padded with '', long ones truncated, missing
attachment lists become []. The whole row set is swapped in one assignment per
snapshot, never patched.

Writes take the projection's copy of the row as the base, merge the edit, re-resolve
the owner from columns[0] and write the merged record back. There is no version
check: concurrent writers to one order overwrite each other and the commit that
lands last wins. Commit and publish run under the feed's write lock, so snapshots
reach the projection in commit order.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from orderboard import get_db
from orderboard.constants.table import STATUS_PENDING, TOPIC_ORDERS, TOPIC_TABLE_CONFIG
from orderboard.errors import NotFoundError, ValidationError
from orderboard.models.order import Order
from orderboard.services.owner_resolver import resolve_owner
from orderboard.services.policy import assert_capability
from orderboard.services.store import load_orders, order_to_doc, publish_orders

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderRow:
    id: str
    owner_id: str
    owner_email: str
    columns: List[str]
    status: str
    attachments: List[Dict[str, str]] = field(default_factory=list)
    owner_display_name: Optional[str] = None
    owner_photo_base64: Optional[str] = None

    def to_json(self, include_attachment_data: bool = False) -> Dict[str, Any]:
        if include_attachment_data:
            attachments = [dict(a) for a in self.attachments]
        else:
            attachments = [{'name': a.get('name', '')} for a in self.attachments]
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'owner_email': self.owner_email,
            'owner_display_name': self.owner_display_name,
            'owner_photo_base64': self.owner_photo_base64,
            'columns': list(self.columns),
            'status': self.status,
            'attachments': attachments,
        }


def normalize_columns(columns: Optional[Sequence[Any]], length: int) -> List[str]:
    values = ['' if v is None else str(v) for v in (columns if isinstance(columns, (list, tuple)) else [])]
    if len(values) < length:
        values.extend([''] * (length - len(values)))
    return values[:length]


def row_from_doc(doc: Dict[str, Any], length: int) -> OrderRow:
    attachments = doc.get('attachments')
    return OrderRow(
        id=doc['id'],
        owner_id=doc.get('owner_id') or '',
        owner_email=doc.get('owner_email') or '',
        owner_display_name=doc.get('owner_display_name'),
        owner_photo_base64=doc.get('owner_photo_base64'),
        columns=normalize_columns(doc.get('columns'), length),
        status=doc.get('status') or STATUS_PENDING,
        attachments=list(attachments) if isinstance(attachments, list) else [],
    )


class OrderTable:
    def __init__(self, feed, registry):
        self.feed = feed
        self.registry = registry
        self._docs: List[Dict[str, Any]] = []
        self._state: Tuple[List[OrderRow], Dict[str, OrderRow]] = ([], {})
        self._unsubscribers = [
            feed.subscribe(TOPIC_ORDERS, self.on_snapshot),
            # registry subscribed first, so its headers are already current here
            feed.subscribe(TOPIC_TABLE_CONFIG, self._on_headers),
        ]

    def close(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()

    @property
    def headers(self) -> List[str]:
        return self.registry.headers

    @property
    def rows(self) -> List[OrderRow]:
        return list(self._state[0])

    def on_snapshot(self, docs):
        self._docs = list(docs or [])
        self._rebuild()

    def _on_headers(self, _doc):
        self._rebuild()

    def _rebuild(self):
        length = len(self.registry.headers)
        rows = [row_from_doc(d, length) for d in self._docs]
        self._state = (rows, {r.id: r for r in rows})

    def resync(self):
        with self.feed.write_lock:
            self.on_snapshot(load_orders(get_db()))

    def get_row(self, row_id: str) -> OrderRow:
        row = self._state[1].get(row_id)
        if row is None:
            raise NotFoundError(f'order {row_id} not found')
        return row

    def write_cell(self, actor, row_id: str, col_index: int, value) -> OrderRow:
        assert_capability(actor, 'ORDERS.EDIT')
        length = len(self.registry.headers)
        if not isinstance(col_index, int) or not 0 <= col_index < length:
            raise ValidationError(f'column index must be between 0 and {length - 1}')
        row = self.get_row(row_id)
        columns = normalize_columns(row.columns, length)
        columns[col_index] = '' if value is None else str(value)
        return self.write_row(actor, replace(row, columns=columns))

    def write_row(self, actor, row: OrderRow) -> OrderRow:
        """Persist columns + status of row, re-resolving its owner from columns[0]."""
        length = len(self.registry.headers)
        columns = normalize_columns(row.columns, length)
        owner = resolve_owner(columns[0] if columns else '', actor)
        session = get_db()
        with self.feed.write_lock:
            o = session.get(Order, row.id, populate_existing=True)
            if o is None:
                raise NotFoundError(f'order {row.id} not found')
            o.owner_id = owner.owner_id
            o.owner_email = owner.owner_email
            o.owner_display_name = owner.owner_display_name
            o.owner_photo_base64 = owner.owner_photo_base64
            o.columns = columns
            o.status = row.status
            session.commit()
            written = row_from_doc(order_to_doc(o), length)
            publish_orders(session, self.feed)
        return written

    def create_row(self, actor, values: Sequence[Any], attachments: Optional[Sequence[Dict[str, str]]] = None) -> OrderRow:
        assert_capability(actor, 'ORDERS.CREATE')
        length = len(self.registry.headers)
        columns = normalize_columns(values, length)
        owner = resolve_owner(columns[0], actor)
        session = get_db()
        o = Order(
            owner_id=owner.owner_id,
            owner_email=owner.owner_email,
            owner_display_name=owner.owner_display_name,
            owner_photo_base64=owner.owner_photo_base64,
            columns=columns,
            status=STATUS_PENDING,
            attachments=[dict(a) for a in (attachments or [])],
        )
        with self.feed.write_lock:
            session.add(o)
            session.commit()
            logger.info('Order %s created by %s (owner %r)', o.id, actor.user_id, owner.owner_email)
            created = row_from_doc(order_to_doc(o), length)
            publish_orders(session, self.feed)
        return created

    def delete_row(self, actor, row_id: str) -> None:
        assert_capability(actor, 'ORDERS.DELETE')
        session = get_db()
        with self.feed.write_lock:
            o = session.get(Order, row_id, populate_existing=True)
            if o is None:
                raise NotFoundError(f'order {row_id} not found')
            session.delete(o)
            session.commit()
            logger.info('Order %s deleted by %s', row_id, actor.user_id)
            publish_orders(session, self.feed)


__all__ = ['OrderRow', 'OrderTable', 'normalize_columns', 'row_from_doc']
