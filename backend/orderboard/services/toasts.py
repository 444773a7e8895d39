from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List
from uuid import uuid4

DEFAULT_TTL_SECONDS = 3.5


@dataclass(frozen=True)
class Toast:
    id: str
    message: str
    created_at: float
    expires_at: float

    def to_json(self):
        return {'id': self.id, 'message': self.message}


class ToastBoard:
    """Per-user ephemeral acknowledgments that expire on their own after `ttl` seconds."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._by_user: Dict[str, List[Toast]] = {}
        self._lock = threading.Lock()

    def push(self, user_id: str, message: str) -> Toast:
        now = self.clock()
        toast = Toast(id=uuid4().hex, message=message, created_at=now, expires_at=now + self.ttl)
        with self._lock:
            self._prune(now)
            self._by_user.setdefault(user_id, []).append(toast)
        return toast

    def _prune(self, now: float):
        """Drop expired toasts of every user; callers hold the lock."""
        for uid in list(self._by_user):
            live = [t for t in self._by_user[uid] if t.expires_at > now]
            if live:
                self._by_user[uid] = live
            else:
                del self._by_user[uid]

    def active(self, user_id: str) -> List[Toast]:
        now = self.clock()
        with self._lock:
            live = [t for t in self._by_user.get(user_id, []) if t.expires_at > now]
            if live:
                self._by_user[user_id] = live
            else:
                self._by_user.pop(user_id, None)
            return list(live)

    def retained(self, user_id: str) -> int:
        """Entries held for user_id, expired or not."""
        with self._lock:
            return len(self._by_user.get(user_id, []))

    def clear(self):
        with self._lock:
            self._by_user.clear()


__all__ = ['Toast', 'ToastBoard', 'DEFAULT_TTL_SECONDS']
