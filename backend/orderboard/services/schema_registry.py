"""Schema registry: the ordered header list shared by every order row.

Headers live in the `table_config` singleton. A stored list that looks like it came
from an older release (blank first header, legacy "DADO n" placeholders, blank
labels, or a column count different from the canonical one) is overwritten with the
canonical headers. That migration is one-way: custom header text is discarded, so
it is logged and audited with the labels that were lost. Setting
SCHEMA_AUTO_MIGRATE=false keeps the stored headers and only reports the mismatch.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from orderboard import get_db
from orderboard.constants.table import (
    DEFAULT_HEADERS, EMAIL_HEADER, LEGACY_HEADER_PATTERN, TABLE_CONFIG_ID, TOPIC_TABLE_CONFIG,
)
from orderboard.errors import ValidationError
from orderboard.services.audit import add_audit
from orderboard.services.policy import assert_capability
from orderboard.services.store import load_table_config, save_table_config, publish_table_config

logger = logging.getLogger(__name__)


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def detect_stale_schema(headers: Optional[Sequence[str]]) -> bool:
    if not headers:
        return True
    if _blank(headers[0]):
        return True
    if len(headers) != len(DEFAULT_HEADERS):
        return True
    for index, header in enumerate(headers):
        if index == 0:
            continue
        if _blank(header) or LEGACY_HEADER_PATTERN.search(header):
            return True
    return False


def with_fixed_email_header(headers: Sequence[str]) -> List[str]:
    out = [str(h) if h is not None else '' for h in headers]
    if out:
        out[0] = EMAIL_HEADER
    else:
        out = [EMAIL_HEADER]
    return out


class SchemaRegistry:
    def __init__(self, feed, auto_migrate: bool = True):
        self.feed = feed
        self.auto_migrate = auto_migrate
        self._headers: List[str] = list(DEFAULT_HEADERS)
        self._unsubscribe = feed.subscribe(TOPIC_TABLE_CONFIG, self.on_snapshot)

    @property
    def headers(self) -> List[str]:
        return list(self._headers)

    def close(self):
        self._unsubscribe()

    def load_or_initialize(self) -> List[str]:
        self.on_snapshot(load_table_config(get_db()))
        return self.headers

    def on_snapshot(self, doc):
        if doc is None:
            logger.info('No table config found; creating %s with canonical headers', TABLE_CONFIG_ID)
            self._persist(list(DEFAULT_HEADERS))
            return
        stored = doc.get('headers')
        if not isinstance(stored, list) or not stored:
            logger.warning('Table config has no usable headers; resetting to canonical headers')
            self._persist(list(DEFAULT_HEADERS))
            return
        if detect_stale_schema(stored):
            if self.auto_migrate:
                self._migrate(stored)
                return
            logger.warning('Stale table headers kept (auto-migrate disabled): %s', stored)
            if _blank(stored[0]) or stored[0] != EMAIL_HEADER:
                self._persist(with_fixed_email_header(stored))
                return
        elif stored[0] != EMAIL_HEADER:
            self._persist(with_fixed_email_header(stored))
            return
        self._headers = list(stored)

    def set_headers(self, actor, next_headers: Sequence[str]) -> List[str]:
        assert_capability(actor, 'TABLE.HEADERS')
        if not isinstance(next_headers, (list, tuple)) or not next_headers:
            raise ValidationError('headers must be a non-empty list')
        headers = with_fixed_email_header(next_headers)
        if self.auto_migrate and detect_stale_schema(headers):
            # would be migrated away on the next snapshot
            raise ValidationError(f'headers must keep {len(DEFAULT_HEADERS)} non-blank labels without legacy placeholders')
        before = self.headers
        add_audit('TABLE.HEADERS.SET', entity='TableConfig', entity_id=TABLE_CONFIG_ID,
                  meta={'changes': {'headers': {'before': before, 'after': headers}}}, actor=actor)
        self._persist(headers)
        return self.headers

    def _migrate(self, stored: List[str]):
        logger.warning('Stale table headers detected; overwriting %s with canonical headers', stored)
        add_audit('TABLE.HEADERS.MIGRATE', entity='TableConfig', entity_id=TABLE_CONFIG_ID,
                  meta={'discarded': list(stored)})
        self._persist(list(DEFAULT_HEADERS))

    def _persist(self, headers: List[str]):
        session = get_db()
        with self.feed.write_lock:
            save_table_config(session, headers)
            self._headers = list(headers)
            publish_table_config(session, self.feed)


__all__ = ['SchemaRegistry', 'detect_stale_schema', 'with_fixed_email_header']
