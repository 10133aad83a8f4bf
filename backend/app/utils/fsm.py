"""Simple finite state machine utility for enforcing allowed state transitions.

Used by the unit of work to guarantee a transaction reaches exactly one
terminal state:
    from app.utils.fsm import TransitionValidator
    UOW_FSM = TransitionValidator({
        'PENDING': {'ACTIVE'},
        'ACTIVE': {'COMMITTED', 'ROLLED_BACK'},
        'COMMITTED': set(),
        'ROLLED_BACK': set(),
    }, field_name='unit of work state')
    UOW_FSM.assert_can_transition(current, target)

Raises InvalidTransition if the edge is not declared.
"""
from __future__ import annotations
from typing import Dict, Set


class InvalidTransition(RuntimeError):
    pass


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidTransition(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def is_terminal(self, state: str) -> bool:
        return not self.graph.get(state)

__all__ = ['TransitionValidator', 'InvalidTransition']
