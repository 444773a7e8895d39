"""Per-app wiring of the order board components.

Built lazily on first use inside an app context: the schema registry and the row
store subscribe to the change feed, the registry loads (or creates / migrates) the
header singleton, and the row store pulls its first snapshot.
"""
from __future__ import annotations
from dataclasses import dataclass
from flask import current_app

from orderboard import get_feed, get_toasts
from orderboard.services.attachments import AttachmentManager
from orderboard.services.notifications import EmailJSNotifier
from orderboard.services.row_store import OrderTable
from orderboard.services.schema_registry import SchemaRegistry
from orderboard.services.status_workflow import StatusWorkflow

EXTENSION_KEY = 'orderboard.board'


@dataclass
class Board:
    registry: SchemaRegistry
    table: OrderTable
    workflow: StatusWorkflow
    attachments: AttachmentManager
    notifier: EmailJSNotifier

    def close(self):
        self.table.close()
        self.registry.close()


def get_board() -> Board:
    board = current_app.extensions.get(EXTENSION_KEY)
    if board is None:
        feed = get_feed()
        toasts = get_toasts()
        registry = SchemaRegistry(feed, auto_migrate=bool(current_app.config.get('SCHEMA_AUTO_MIGRATE', True)))
        table = OrderTable(feed, registry)
        registry.load_or_initialize()
        table.resync()
        notifier = EmailJSNotifier.from_config(current_app.config)
        board = Board(
            registry=registry,
            table=table,
            workflow=StatusWorkflow(table, notifier, toasts),
            attachments=AttachmentManager(table, toasts),
            notifier=notifier,
        )
        current_app.extensions[EXTENSION_KEY] = board
    return board


def reset_board():
    board = current_app.extensions.pop(EXTENSION_KEY, None)
    if board is not None:
        board.close()


__all__ = ['Board', 'get_board', 'reset_board']
