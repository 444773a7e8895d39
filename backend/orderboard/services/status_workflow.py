"""Status workflow for orders.

The four statuses form a flat enum: any capability-bearing actor may move an order
from any status to any other. A transition persists the new status (through the
row store, so the owner is re-resolved like any other row write), then hands a
notification to channel B without waiting on it, then leaves a short-lived toast for
the acting user. Channel A fires on its own from the flush (see mail_trigger).
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from orderboard.constants.table import ALL_STATUSES
from orderboard.services.policy import assert_capability
from orderboard.services.row_store import OrderRow
from orderboard.utils.fsm import TransitionValidator
from orderboard.utils.validation import validate_status

logger = logging.getLogger(__name__)

# Complete graph: every status reaches every other one directly
ORDER_STATUS_FSM = TransitionValidator({s: set(ALL_STATUSES) - {s} for s in ALL_STATUSES})


@dataclass(frozen=True)
class StatusChange:
    row: OrderRow
    previous_status: str
    payload: Optional[Dict[str, str]]
    toast: Optional[object]

    @property
    def changed(self) -> bool:
        return self.previous_status != self.row.status


def acknowledgment_message(user_email: str, new_status: str) -> str:
    return f'Notificação de e-mail para {user_email}: status atualizado para {new_status}.'


class StatusWorkflow:
    def __init__(self, table, notifier, toasts):
        self.table = table
        self.notifier = notifier
        self.toasts = toasts

    def change_status(self, actor, row_id: str, new_status: str) -> StatusChange:
        assert_capability(actor, 'ORDERS.STATUS')
        validate_status(new_status, ALL_STATUSES, 'status')
        row = self.table.get_row(row_id)
        previous = row.status
        if previous == new_status:
            return StatusChange(row=row, previous_status=previous, payload=None, toast=None)
        ORDER_STATUS_FSM.assert_can_transition(previous, new_status)
        written = self.table.write_row(actor, replace(row, status=new_status))
        payload = self._dispatch(row.owner_email, new_status, row.id)
        toast = self.toasts.push(actor.user_id, acknowledgment_message(row.owner_email, new_status))
        return StatusChange(row=written, previous_status=previous, payload=payload, toast=toast)

    def _dispatch(self, user_email: str, new_status: str, order_id: str):
        try:
            return self.notifier.send_status_notification(user_email, new_status, order_id)
        except Exception:
            # status write is already committed
            logger.exception('Status notification for order %s could not be dispatched', order_id)
            return None


__all__ = ['StatusWorkflow', 'StatusChange', 'ORDER_STATUS_FSM', 'acknowledgment_message']
