from __future__ import annotations
"""Transition table for status-like fields.

Usage:
    from orderboard.utils.fsm import TransitionValidator
    STATUS_FSM = TransitionValidator({
        'PENDENTE': {'EM_ANALISE', 'APROVADO', 'REJEITADO'},
        ...
    })
    STATUS_FSM.assert_can_transition(current_status, target_status)

Raises ValidationError (400) if the edge is missing.
"""
from typing import Dict, Iterable, Set

from orderboard.errors import ValidationError


class TransitionValidator:
    def __init__(self, graph: Dict[str, Iterable[str]], field_name: str = 'status'):
        self.graph: Dict[str, Set[str]] = {k: set(v) for k, v in graph.items()}
        self.field_name = field_name

    def targets(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise ValidationError(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']
