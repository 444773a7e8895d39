from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..constants.permissions import ROLE_MASTER, capabilities_for

VIEW_DASHBOARD = 'dashboard'
VIEW_ACCOUNTS = 'accounts'
VIEW_ACCOUNT = 'account'
ALL_VIEWS = (VIEW_DASHBOARD, VIEW_ACCOUNTS, VIEW_ACCOUNT)


@dataclass(frozen=True)
class ActorContext:
    """Who is acting and what they are looking at.

    Passed explicitly into the view composer and the row store instead of living in
    ambient globals. `view` / `selected_account_id` only matter for MASTER.
    """
    user_id: str
    email: str
    role: str
    capabilities: FrozenSet[str] = field(default_factory=frozenset)
    view: str = VIEW_DASHBOARD
    selected_account_id: Optional[str] = None

    @classmethod
    def for_user(cls, user, master_can_edit_status: bool = False, **kwargs) -> 'ActorContext':
        return cls(
            user_id=user.id,
            email=user.email,
            role=user.role,
            capabilities=capabilities_for(user.role, master_can_edit_status),
            **kwargs,
        )

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    @property
    def is_master(self) -> bool:
        return self.role == ROLE_MASTER


__all__ = ['ActorContext', 'VIEW_DASHBOARD', 'VIEW_ACCOUNTS', 'VIEW_ACCOUNT', 'ALL_VIEWS']
