from dataclasses import replace
from flask import Blueprint, request

from orderboard.decorators.audit import audit_log
from orderboard.decorators.auth import current_actor, require_capabilities
from orderboard.services.accounts import delete_user, get_user, list_users_query, user_json
from orderboard.services.context import VIEW_ACCOUNT
from orderboard.services.runtime import get_board
from orderboard.services.view_composer import compose_table_view
from orderboard.utils.listing import apply_pagination, build_list_payload

accounts_bp = Blueprint('accounts', __name__)


@accounts_bp.get('')
@require_capabilities('ACCOUNTS.MANAGE')
def list_accounts():
    q = list_users_query(current_actor())
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([user_json(u) for u in paged_q.all()], total, limit, offset)


@accounts_bp.delete('/<user_id>')
@require_capabilities('ACCOUNTS.MANAGE')
@audit_log('ACCOUNT.DELETE', entity='User', entity_id_arg='user_id', meta_keys=['email'])
def remove_account(user_id: str):
    user = delete_user(current_actor(), user_id)
    return {'status': 'deleted', 'email': user.email}


@accounts_bp.get('/<user_id>/orders')
@require_capabilities('ACCOUNTS.MANAGE')
def account_orders(user_id: str):
    """Orders owned by one account, as the MASTER's per-account view."""
    account = get_user(user_id)
    ctx = replace(current_actor(), view=VIEW_ACCOUNT, selected_account_id=account.id)
    board = get_board()
    body = compose_table_view(ctx, board.registry.headers, board.table.rows,
                              status=request.args.get('status'), sort=request.args.get('sort'))
    body['account'] = user_json(account)
    return body
