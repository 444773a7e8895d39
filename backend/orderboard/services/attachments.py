"""Attachment manager: documents carried inline on an order as data URIs.

Appending is all-or-nothing: every file is encoded before anything is written, and
the old and new entries go out together in one write. Existing entries are never
touched, reordered or removed.
"""
from __future__ import annotations
import base64
import logging
import mimetypes
from typing import Dict, Iterable, List, Optional

from orderboard import get_db
from orderboard.errors import AttachmentError, NotFoundError
from orderboard.models.order import Order
from orderboard.services.policy import assert_capability
from orderboard.services.store import publish_orders

logger = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = 'Erro ao enviar documentos. Tente novamente.'


def to_data_uri(content: bytes, mimetype: Optional[str] = None, filename: Optional[str] = None) -> str:
    if not mimetype and filename:
        mimetype = mimetypes.guess_type(filename)[0]
    mimetype = mimetype or 'application/octet-stream'
    return f"data:{mimetype};base64,{base64.b64encode(content).decode('ascii')}"


def encode_file(file) -> Dict[str, str]:
    """Encode an uploaded file (werkzeug FileStorage or a (name, bytes[, mimetype]) tuple)."""
    if isinstance(file, tuple):
        name, content = file[0], file[1]
        mimetype = file[2] if len(file) > 2 else None
    else:
        name = file.filename
        mimetype = file.mimetype
        content = file.read()
    if not name:
        raise AttachmentError('file name required')
    if not isinstance(content, (bytes, bytearray)):
        raise AttachmentError(f'could not read {name}')
    return {'name': name, 'data': to_data_uri(bytes(content), mimetype, name)}


def encode_files(files: Iterable) -> List[Dict[str, str]]:
    encoded = []
    for f in files:
        try:
            encoded.append(encode_file(f))
        except AttachmentError:
            raise
        except Exception as e:
            logger.error('Failed to encode attachment: %s', e)
            raise AttachmentError(UPLOAD_FAILED_MESSAGE) from e
    return encoded


class AttachmentManager:
    def __init__(self, table, toasts):
        self.table = table
        self.toasts = toasts

    def append_attachments(self, actor, order_id: str, files: Iterable):
        assert_capability(actor, 'ORDERS.ATTACH')
        files = list(files)
        row = self.table.get_row(order_id)
        if not files:
            return row
        try:
            uploads = encode_files(files)
        except AttachmentError:
            self.toasts.push(actor.user_id, UPLOAD_FAILED_MESSAGE)
            raise
        session = get_db()
        with self.table.feed.write_lock:
            o = session.get(Order, order_id, populate_existing=True)
            if o is None:
                raise NotFoundError(f'order {order_id} not found')
            # Base list comes from the projection, as the viewer saw it
            o.attachments = [dict(a) for a in row.attachments] + uploads
            session.commit()
            logger.info('Appended %d attachment(s) to order %s', len(uploads), order_id)
            publish_orders(session, self.table.feed)
        return self.table.get_row(order_id)


__all__ = ['AttachmentManager', 'encode_file', 'encode_files', 'to_data_uri', 'UPLOAD_FAILED_MESSAGE']
