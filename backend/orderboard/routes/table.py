import json

from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import jwt_required

from orderboard import get_feed, get_toasts
from orderboard.constants.table import TOPIC_ORDERS, TOPIC_TABLE_CONFIG
from orderboard.decorators.audit import audit_log
from orderboard.decorators.auth import current_actor, require_capabilities
from orderboard.errors import AttachmentError
from orderboard.services.accounts import list_users_query, user_json
from orderboard.services.attachments import UPLOAD_FAILED_MESSAGE, encode_files
from orderboard.services.context import VIEW_ACCOUNTS
from orderboard.services.owner_resolver import normalize_email, resolve_owner
from orderboard.services.policy import assert_can_view_row
from orderboard.services.runtime import get_board
from orderboard.services.view_composer import compose_table_view, forward_links, resolve_view
from orderboard.utils.listing import compute_etag, handle_conditional, make_etag_response
from orderboard.utils.validation import require_string_list

table_bp = Blueprint('table', __name__)


@table_bp.get('')
@jwt_required()
def get_table():
    """Composed table view for the caller; answers 304 while nothing behind it changed."""
    actor = current_actor()
    board = get_board()
    feed = get_feed()
    parts = [
        current_app.config['BOOT_ID'],
        feed.version(TOPIC_ORDERS), feed.version(TOPIC_TABLE_CONFIG),
        actor.user_id, request.query_string.decode(),
    ]
    accounts = None
    if resolve_view(actor) == VIEW_ACCOUNTS:
        # account writes do not go through the feed, so the roster itself is part of the tag
        accounts = [user_json(u) for u in list_users_query(actor).all()]
        parts.append(json.dumps(accounts, sort_keys=True))
    etag = compute_etag(*parts)
    cond = handle_conditional(etag)
    if cond:
        return cond
    body = compose_table_view(
        actor, board.registry.headers, board.table.rows,
        status=request.args.get('status'), sort=request.args.get('sort'),
    )
    if accounts is not None:
        body['accounts'] = accounts
    return make_etag_response(body, etag)


@table_bp.get('/headers')
@jwt_required()
def get_headers():
    return {'headers': get_board().registry.headers}


@table_bp.put('/headers')
@require_capabilities('TABLE.HEADERS')
def put_headers():
    data = request.json or {}
    headers = require_string_list(data.get('headers'), 'headers')
    return {'headers': get_board().registry.set_headers(current_actor(), headers)}


def _create_payload():
    """Values + encoded attachments from either a JSON body or a multipart form."""
    if request.files or request.form:
        raw = request.form.get('values')
        if raw is not None and raw.startswith('['):
            try:
                values = json.loads(raw)
            except ValueError:
                abort(400, description='values must be a JSON list')
        else:
            values = request.form.getlist('values')
        return require_string_list(values, 'values'), request.files.getlist('files')
    data = request.json or {}
    return require_string_list(data.get('values') or [], 'values'), []


@table_bp.post('/orders')
@require_capabilities('ORDERS.CREATE')
@audit_log('ORDER.CREATE', entity='Order', entity_id_key='id', meta_keys=['owner_email', 'status'])
def create_order():
    actor = current_actor()
    board = get_board()
    values, files = _create_payload()
    try:
        attachments = encode_files(files)
    except AttachmentError:
        get_toasts().push(actor.user_id, UPLOAD_FAILED_MESSAGE)
        raise
    row = board.table.create_row(actor, values, attachments)
    return row.to_json(), 201


@table_bp.get('/orders/<order_id>')
@jwt_required()
def get_order(order_id: str):
    actor = current_actor()
    row = get_board().table.get_row(order_id)
    assert_can_view_row(actor, row)
    return row.to_json(include_attachment_data=True)


@table_bp.put('/orders/<order_id>/cells/<int:col_index>')
@require_capabilities('ORDERS.EDIT')
def put_cell(order_id: str, col_index: int):
    data = request.json or {}
    if 'value' not in data:
        abort(400, description='value required')
    row = get_board().table.write_cell(current_actor(), order_id, col_index, data.get('value'))
    return row.to_json()


def _prefetch_status(order_id):
    return {'status': get_board().table.get_row(order_id).status}


@table_bp.put('/orders/<order_id>/status')
@require_capabilities('ORDERS.STATUS')
@audit_log(
    'ORDER.STATUS',
    entity='Order',
    entity_id_key='id',
    diff_keys=['status'],
    pre_fetch=lambda a, kw: _prefetch_status(kw.get('order_id')),
    meta_keys=['status'],
)
def put_status(order_id: str):
    data = request.json or {}
    change = get_board().workflow.change_status(current_actor(), order_id, data.get('status'))
    body = change.row.to_json()
    body['notification'] = change.payload
    body['toast'] = change.toast.to_json() if change.toast else None
    return body


@table_bp.delete('/orders/<order_id>')
@require_capabilities('ORDERS.DELETE')
@audit_log('ORDER.DELETE', entity='Order', entity_id_arg='order_id')
def delete_order(order_id: str):
    get_board().table.delete_row(current_actor(), order_id)
    return {'status': 'deleted'}


@table_bp.post('/orders/<order_id>/attachments')
@require_capabilities('ORDERS.ATTACH')
@audit_log('ORDER.ATTACH', entity='Order', entity_id_key='id', meta_keys=['added'])
def post_attachments(order_id: str):
    files = request.files.getlist('files')
    if not files:
        abort(400, description='files required')
    board = get_board()
    before = len(board.table.get_row(order_id).attachments)
    row = board.attachments.append_attachments(current_actor(), order_id, files)
    body = row.to_json()
    body['added'] = len(row.attachments) - before
    return body, 201


@table_bp.get('/orders/<order_id>/forward')
@require_capabilities('ORDERS.FORWARD')
def get_forward(order_id: str):
    return forward_links(get_board().table.get_row(order_id))


@table_bp.get('/owner-preview')
@require_capabilities('ORDERS.CREATE')
def owner_preview():
    """Client card shown while typing the e-mail of a new order."""
    email = normalize_email(request.args.get('email'))
    if not email:
        return {'owner': None}
    owner = resolve_owner(email, current_actor())
    if not (owner.owner_display_name or owner.owner_photo_base64):
        return {'owner': None}
    return {'owner': owner.to_json()}


@table_bp.get('/toasts')
@jwt_required()
def get_active_toasts():
    actor = current_actor()
    return {'data': [t.to_json() for t in get_toasts().active(actor.user_id)]}
