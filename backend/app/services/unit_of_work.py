"""Request-scoped transaction boundary.

    with UnitOfWork(session, 'CATEGORY.DELETE') as uow:
        ...  # guards, writes, relation sync, audit

Clean exit commits. A DomainError rolls back and propagates as-is; any other
exception rolls back, is logged, and surfaces as PersistenceError so a raw
storage exception never escapes a service.
"""
from __future__ import annotations
import logging

from app.errors import DomainError, PersistenceError
from app.utils.fsm import TransitionValidator

logger = logging.getLogger(__name__)

PENDING = 'PENDING'
ACTIVE = 'ACTIVE'
COMMITTED = 'COMMITTED'
ROLLED_BACK = 'ROLLED_BACK'

UOW_FSM = TransitionValidator({
    PENDING: {ACTIVE},
    ACTIVE: {COMMITTED, ROLLED_BACK},
    COMMITTED: set(),
    ROLLED_BACK: set(),
}, field_name='unit of work state')


class UnitOfWork:
    def __init__(self, session, operation: str):
        self.session = session
        self.operation = operation
        self.state = PENDING

    def _move(self, target: str):
        UOW_FSM.assert_can_transition(self.state, target)
        self.state = target

    def __enter__(self):
        self._move(ACTIVE)
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            try:
                self.session.commit()
            except Exception as commit_exc:
                self._rollback()
                logger.exception('%s failed on commit; transaction rolled back', self.operation)
                raise PersistenceError(self.operation) from commit_exc
            self._move(COMMITTED)
            return False
        self._rollback()
        if issubclass(exc_type, DomainError):
            return False
        logger.exception('%s failed; transaction rolled back', self.operation, exc_info=(exc_type, exc, tb))
        raise PersistenceError(self.operation) from exc

    def _rollback(self):
        try:
            self.session.rollback()
        finally:
            self._move(ROLLED_BACK)

__all__ = ['UnitOfWork', 'UOW_FSM', 'PENDING', 'ACTIVE', 'COMMITTED', 'ROLLED_BACK']
