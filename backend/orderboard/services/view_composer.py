"""View composer: what the acting user gets to see of the order table.

A pure projection over (actor context, headers, normalized rows). It never reads the
database; the route hands it the row store's current state.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

from orderboard.constants.table import ALL_STATUSES, status_label
from orderboard.services.context import VIEW_ACCOUNT, VIEW_ACCOUNTS, VIEW_DASHBOARD
from orderboard.services.policy import visible_rows
from orderboard.utils.filters import apply_filters
from orderboard.utils.sorting import apply_multi_sort

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


def resolve_view(actor) -> str:
    """MASTER lands on account management; everyone else only has the dashboard."""
    if not actor.is_master:
        return VIEW_DASHBOARD
    if actor.view == VIEW_ACCOUNT and actor.selected_account_id:
        return VIEW_ACCOUNT
    return VIEW_ACCOUNTS


def forward_links(row) -> Dict[str, str]:
    joined = ' | '.join(row.columns)
    return {
        'whatsapp': 'https://wa.me/?text=' + quote(f'Pedido/Registro: {joined} - Status: {row.status}', safe=_URI_COMPONENT_SAFE),
        'email': f'mailto:?subject=Registro {row.id}&body=' + quote('\n'.join(row.columns) + f'\n\nStatus: {row.status}', safe=_URI_COMPONENT_SAFE),
        'text': f'{joined} | Status: {row.status}',
    }


def row_actions(actor) -> List[str]:
    actions = ['details']
    for capability, action in (
        ('ORDERS.EDIT', 'edit'),
        ('ORDERS.STATUS', 'status'),
        ('ORDERS.ATTACH', 'attach'),
        ('ORDERS.FORWARD', 'forward'),
        ('ORDERS.DELETE', 'delete'),
    ):
        if actor.can(capability):
            actions.append(action)
    return actions


def _row_view(actor, row, actions: List[str], show_client: bool) -> Dict[str, Any]:
    body = row.to_json()
    body['status_label'] = status_label(row.status)
    body['actions'] = actions
    if not show_client:
        # Clients see their own rows; the denormalized owner card is staff-only
        body.pop('owner_display_name', None)
        body.pop('owner_photo_base64', None)
    if 'forward' in actions:
        body['forward'] = forward_links(row)
    return body


def compose_table_view(actor, headers: Sequence[str], rows: Sequence, status: Optional[str] = None,
                       sort: Optional[str] = None) -> Dict[str, Any]:
    view = resolve_view(actor)
    selected: List = []
    if view != VIEW_ACCOUNTS:
        selected = visible_rows(actor, rows)
        if view == VIEW_ACCOUNT:
            selected = [r for r in selected if r.owner_id == actor.selected_account_id]
        selected = apply_filters(selected, {
            'status': {'match': lambda r, v: r.status == v, 'validate': lambda v: v in ALL_STATUSES},
        }, {'status': status})
        position = {r.id: i for i, r in enumerate(rows)}
        allowed = {
            'status': lambda r: ALL_STATUSES.index(r.status) if r.status in ALL_STATUSES else len(ALL_STATUSES),
            'owner': lambda r: r.owner_email,
        }
        for index in range(len(headers)):
            allowed[f'col{index}'] = (lambda i: lambda r: r.columns[i].lower())(index)
        selected = apply_multi_sort(selected, sort, allowed, lambda r: position.get(r.id, 0))
    show_client = actor.can('ORDERS.READ_ALL')
    actions = row_actions(actor)
    return {
        'view': view,
        'selected_account_id': actor.selected_account_id if view == VIEW_ACCOUNT else None,
        'headers': list(headers),
        # index 0 ("Email") is never editable
        'editable_headers': [i > 0 and actor.can('TABLE.HEADERS') for i in range(len(headers))],
        'show_client_column': show_client,
        'can_create': actor.can('ORDERS.CREATE'),
        'statuses': [{'code': s, 'label': status_label(s)} for s in ALL_STATUSES],
        'rows': [_row_view(actor, r, actions, show_client) for r in selected],
        'total': len(selected),
    }


__all__ = ['compose_table_view', 'resolve_view', 'forward_links', 'row_actions']
