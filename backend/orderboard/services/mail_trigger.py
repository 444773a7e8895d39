"""Server-side status trigger (notification channel A).

Hooked on `before_flush` of the app's session factory: whenever an existing order's
`status` actually changes, a templated HTML message is queued in the `mail` table in
the same transaction. It runs independently of the client-side EmailJS call, so a
single transition may notify twice.
"""
from __future__ import annotations
import logging
from jinja2 import Environment
from sqlalchemy import event, inspect

from orderboard.constants.table import status_label
from orderboard.models.mail import MailMessage
from orderboard.models.order import Order
from orderboard.services.owner_resolver import normalize_email

logger = logging.getLogger(__name__)

_env = Environment(autoescape=True)

STATUS_EMAIL_TEMPLATE = _env.from_string("""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Atualização do seu pedido</title>
</head>
<body style="font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1a1a1a; max-width: 560px; margin: 0 auto; padding: 24px;">
  <h2 style="margin-top: 0; color: #111;">Atualização do seu pedido</h2>
  <p>Olá,</p>
  <p>O status do seu pedido foi atualizado:</p>
  <p style="font-size: 1.1em;"><strong>Novo status: {{ status_label }}</strong></p>
  <p>Mantemos você informado sobre as etapas do seu pedido. Em caso de dúvidas, entre em contato.</p>
  <p style="margin-top: 32px; font-size: 0.9em; color: #666;">
    Referência do pedido: {{ order_id }}
  </p>
  <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;">
  <p style="font-size: 0.85em; color: #888;">Este é um e-mail automático. Por favor, não responda diretamente.</p>
</body>
</html>""")


def build_status_email(recipient: str, new_status: str, order_id: str) -> MailMessage:
    label = status_label(new_status)
    return MailMessage(
        to=recipient,
        subject=f'Atualização do seu pedido – Status: {label}',
        html=STATUS_EMAIL_TEMPLATE.render(status_label=label, order_id=order_id, status=new_status),
        order_id=order_id,
    )


def _recipient(order: Order) -> str:
    email = order.owner_email
    if not email and isinstance(order.columns, list) and order.columns:
        email = order.columns[0]
    return normalize_email(email if isinstance(email, str) else '')


def queue_status_emails(session, flush_context=None, instances=None):
    for obj in list(session.dirty):
        if not isinstance(obj, Order):
            continue
        history = inspect(obj).attrs.status.history
        if not history.deleted:
            continue
        before, after = history.deleted[0], obj.status
        if not after or before == after:
            continue
        recipient = _recipient(obj)
        if not recipient:
            logger.info('Order %s changed status to %s but has no recipient; mail skipped', obj.id, after)
            continue
        session.add(build_status_email(recipient, after, obj.id))
        logger.info('Queued status mail for order %s (%s -> %s) to %s', obj.id, before, after, recipient)


def install_status_trigger(session_factory):
    if not event.contains(session_factory, 'before_flush', queue_status_emails):
        event.listen(session_factory, 'before_flush', queue_status_emails)


__all__ = ['install_status_trigger', 'queue_status_emails', 'build_status_email', 'STATUS_EMAIL_TEMPLATE']
