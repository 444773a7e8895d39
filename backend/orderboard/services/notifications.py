"""Client-side status notification (channel B): a direct call to the transactional
e-mail API (EmailJS REST endpoint).

Dispatch is fire-and-forget. The call runs on a small background executor unless
NOTIFY_SYNC is set; any failure is logged and swallowed so the status change that
triggered it is never blocked or reverted. Missing credentials turn the call into a
logged no-op.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from orderboard.config.settings import DEFAULT_EMAILJS_ENDPOINT
from orderboard.constants.table import status_label
from orderboard.services.owner_resolver import normalize_email

logger = logging.getLogger(__name__)


def build_status_payload(user_email: str, new_status: str, order_id: Optional[str] = None) -> Dict[str, str]:
    return {
        'to_email': normalize_email(user_email),
        'status': new_status,
        'status_label': status_label(new_status),
        'order_id': order_id or '',
    }


@dataclass
class EmailJSNotifier:
    service_id: str = ''
    template_id: str = ''
    public_key: str = ''
    endpoint: str = DEFAULT_EMAILJS_ENDPOINT
    timeout: float = 10.0
    sync: bool = False

    _executor = None

    @classmethod
    def from_config(cls, config) -> 'EmailJSNotifier':
        return cls(
            service_id=config.get('EMAILJS_SERVICE_ID') or '',
            template_id=config.get('EMAILJS_TEMPLATE_ID') or '',
            public_key=config.get('EMAILJS_PUBLIC_KEY') or '',
            endpoint=config.get('EMAILJS_ENDPOINT') or DEFAULT_EMAILJS_ENDPOINT,
            timeout=float(config.get('EMAILJS_TIMEOUT') or 10.0),
            sync=bool(config.get('NOTIFY_SYNC')),
        )

    @property
    def configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)

    def send_status_notification(self, user_email: str, new_status: str, order_id: Optional[str] = None) -> Optional[Dict[str, str]]:
        """Queue the status e-mail; returns the payload, or None when nothing was sent."""
        if not self.configured:
            logger.warning(
                '[EmailJS] credentials not configured; status notification skipped '
                '(service_id=%s template_id=%s public_key=%s)',
                bool(self.service_id), bool(self.template_id), bool(self.public_key),
            )
            return None
        payload = build_status_payload(user_email, new_status, order_id)
        if not payload['to_email']:
            return None
        body = {
            'service_id': self.service_id,
            'template_id': self.template_id,
            'user_id': self.public_key,
            'template_params': payload,
        }
        if self.sync:
            self._post(body)
        else:
            self._get_executor().submit(self._post, body)
        return payload

    def _post(self, body: Dict[str, Any]) -> bool:
        to_email = body['template_params']['to_email']
        try:
            response = requests.post(self.endpoint, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error('[EmailJS] status notification to %s failed: %s', to_email, e)
            return False
        logger.info('[EmailJS] status notification sent to %s', to_email)
        return True

    @classmethod
    def _get_executor(cls) -> ThreadPoolExecutor:
        if EmailJSNotifier._executor is None:
            EmailJSNotifier._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='emailjs')
        return EmailJSNotifier._executor


__all__ = ['EmailJSNotifier', 'build_status_payload']
