"""Central role / capability definitions to avoid typos in capability strings.

The matrix is the only source of truth for what a role may do with the order table;
JWT claims are built from it at login and every guarded route checks against it.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, List

ROLE_MASTER = 'MASTER'
ROLE_OPERATOR = 'OPERATOR'
ROLE_CLIENT = 'CLIENT'
ALL_ROLES = (ROLE_MASTER, ROLE_OPERATOR, ROLE_CLIENT)
# MASTER is a fixed account and cannot come out of the register form
SELF_REGISTRABLE_ROLES = (ROLE_OPERATOR, ROLE_CLIENT)

SERVICE_ACTIONS = {
    'ORDERS': ['READ_ALL', 'READ_OWN', 'EDIT', 'STATUS', 'CREATE', 'DELETE', 'ATTACH', 'FORWARD'],
    'TABLE': ['HEADERS'],
    'ACCOUNTS': ['MANAGE'],
}


def build_all_capability_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_CAPABILITY_CODES = build_all_capability_codes()

ROLE_CAPABILITIES: Dict[str, List[str]] = {
    # ORDERS.STATUS is withheld from MASTER by routing policy (see MASTER_CAN_EDIT_STATUS)
    ROLE_MASTER: [
        'ORDERS.READ_ALL', 'ORDERS.READ_OWN', 'ORDERS.EDIT', 'ORDERS.CREATE', 'ORDERS.DELETE',
        'ORDERS.ATTACH', 'ORDERS.FORWARD', 'TABLE.HEADERS', 'ACCOUNTS.MANAGE',
    ],
    ROLE_OPERATOR: [
        'ORDERS.READ_ALL', 'ORDERS.READ_OWN', 'ORDERS.EDIT', 'ORDERS.STATUS', 'ORDERS.CREATE',
        'ORDERS.DELETE', 'ORDERS.ATTACH', 'TABLE.HEADERS',
    ],
    ROLE_CLIENT: ['ORDERS.READ_OWN'],
}


def capabilities_for(role: str, master_can_edit_status: bool = False) -> FrozenSet[str]:
    """Pure role -> capability set. Unknown roles get nothing."""
    caps = set(ROLE_CAPABILITIES.get(role, []))
    if role == ROLE_MASTER and master_can_edit_status:
        caps.add('ORDERS.STATUS')
    return frozenset(caps)


__all__ = [
    'ROLE_MASTER', 'ROLE_OPERATOR', 'ROLE_CLIENT', 'ALL_ROLES', 'SELF_REGISTRABLE_ROLES',
    'SERVICE_ACTIONS', 'ALL_CAPABILITY_CODES', 'ROLE_CAPABILITIES', 'capabilities_for',
]
