import io
import pytest
from werkzeug.datastructures import FileStorage
from orderboard import get_db
from orderboard.errors import AttachmentError, PermissionDenied
from orderboard.models import Order
from orderboard.services.attachments import AttachmentManager, UPLOAD_FAILED_MESSAGE, encode_file, to_data_uri
from orderboard.services.toasts import ToastBoard
from tests.test_utils_seed import order_values, seed_actors


class BrokenUpload:
    filename = 'quebrado.pdf'
    mimetype = 'application/pdf'

    def read(self):
        raise OSError('disk read failed')


def test_to_data_uri():
    assert to_data_uri(b'hi', 'application/pdf') == 'data:application/pdf;base64,aGk='
    assert to_data_uri(b'hi', filename='nota.pdf').startswith('data:application/pdf;base64,')
    assert to_data_uri(b'hi').startswith('data:application/octet-stream;base64,')


def test_encode_file_storage():
    fs = FileStorage(stream=io.BytesIO(b'abc'), filename='nf.xml', content_type='application/xml')
    assert encode_file(fs) == {'name': 'nf.xml', 'data': 'data:application/xml;base64,YWJj'}
    with pytest.raises(AttachmentError):
        encode_file(('', b'abc'))


def test_append_is_monotonic(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'))
    manager = AttachmentManager(board.table, ToastBoard())
    first = manager.append_attachments(operator, row.id, [('a.pdf', b'A'), ('b.pdf', b'B')])
    assert [a['name'] for a in first.attachments] == ['a.pdf', 'b.pdf']
    second = manager.append_attachments(operator, row.id, [('c.png', b'C', 'image/png')])
    assert [a['name'] for a in second.attachments] == ['a.pdf', 'b.pdf', 'c.png']
    assert second.attachments[:2] == first.attachments
    assert second.attachments[2]['data'] == 'data:image/png;base64,Qw=='
    stored = get_db().get(Order, row.id, populate_existing=True)
    assert [a['name'] for a in stored.attachments] == ['a.pdf', 'b.pdf', 'c.png']


def test_failed_encoding_leaves_row_unchanged(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'), [{'name': 'x.pdf', 'data': 'data:,'}])
    toasts = ToastBoard()
    manager = AttachmentManager(board.table, toasts)
    with pytest.raises(AttachmentError) as exc:
        manager.append_attachments(operator, row.id, [('ok.pdf', b'ok'), BrokenUpload()])
    assert exc.value.detail == UPLOAD_FAILED_MESSAGE
    assert board.table.get_row(row.id).attachments == [{'name': 'x.pdf', 'data': 'data:,'}]
    assert get_db().get(Order, row.id, populate_existing=True).attachments == [{'name': 'x.pdf', 'data': 'data:,'}]
    assert [t.message for t in toasts.active(operator.user_id)] == [UPLOAD_FAILED_MESSAGE]


def test_attach_requires_capability(board):
    actors = seed_actors()
    row = board.table.create_row(actors['operator'][1], order_values('client@demo.com'))
    manager = AttachmentManager(board.table, ToastBoard())
    with pytest.raises(PermissionDenied):
        manager.append_attachments(actors['client'][1], row.id, [('a.pdf', b'A')])


def test_empty_upload_is_noop(board):
    actors = seed_actors()
    row = board.table.create_row(actors['operator'][1], order_values('client@demo.com'))
    manager = AttachmentManager(board.table, ToastBoard())
    assert manager.append_attachments(actors['master'][1], row.id, []).attachments == []
