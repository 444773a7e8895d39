from __future__ import annotations
from typing import Iterable, Set
from flask import current_app
from flask_jwt_extended import get_jwt

from orderboard.constants.permissions import capabilities_for
from orderboard.errors import PermissionDenied


def current_capabilities() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('caps', []))


def has_capabilities(*codes: str) -> bool:
    caps = current_capabilities()
    return all(c in caps for c in codes)


def effective_capabilities(role: str):
    """Capability set for role under the running app's routing policy."""
    master_can_edit_status = bool(current_app.config.get('MASTER_CAN_EDIT_STATUS', False))
    return capabilities_for(role, master_can_edit_status)


def assert_capability(actor, code: str):
    if not actor.can(code):
        raise PermissionDenied(f'{actor.role} lacks {code}')


def can_view_row(actor, row) -> bool:
    """Row-level read rule: CLIENTs see only rows they own, everyone else sees all."""
    if actor.can('ORDERS.READ_ALL'):
        return True
    return actor.can('ORDERS.READ_OWN') and bool(row.owner_id) and row.owner_id == actor.user_id


def visible_rows(actor, rows: Iterable):
    return [r for r in rows if can_view_row(actor, r)]


def assert_can_view_row(actor, row):
    if not can_view_row(actor, row):
        raise PermissionDenied('Record ownership required')
