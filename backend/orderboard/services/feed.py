"""In-process change feed standing in for the document store's subscriptions.

Writers publish a full collection snapshot after committing; every subscriber gets
the snapshot synchronously, in subscription order, run to completion. There is no
incremental patching: a snapshot always replaces whatever the subscriber held.
"""
from __future__ import annotations
import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class ChangeFeed:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._versions: Dict[str, int] = defaultdict(int)
        # held by writers from commit through publish so snapshots land in commit order
        self.write_lock = threading.RLock()

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register callback for topic; returns an unsubscribe function."""
        self._subscribers[topic].append(callback)

        def unsubscribe():
            try:
                self._subscribers[topic].remove(callback)
            except ValueError:
                pass
        return unsubscribe

    def publish(self, topic: str, snapshot: Any) -> int:
        with self.write_lock:
            self._versions[topic] += 1
            version = self._versions[topic]
            for callback in list(self._subscribers[topic]):
                try:
                    callback(snapshot)
                except Exception:
                    # remaining subscribers still get the snapshot
                    logger.exception('Subscriber failed on topic %s (version %s)', topic, version)
            return version

    def version(self, topic: str) -> int:
        return self._versions[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers[topic])


__all__ = ['ChangeFeed']
