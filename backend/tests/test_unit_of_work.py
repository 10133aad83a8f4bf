import pytest
from app.errors import NotFoundError, PersistenceError
from app.models.category import Category
from app.services.unit_of_work import ACTIVE, COMMITTED, PENDING, ROLLED_BACK, UnitOfWork, UOW_FSM
from app.utils.fsm import InvalidTransition


def test_clean_exit_commits(session):
    uow = UnitOfWork(session, 'TEST.CREATE')
    assert uow.state == PENDING
    with uow:
        assert uow.state == ACTIVE
        session.add(Category(name='Committed'))
    assert uow.state == COMMITTED
    session.expire_all()
    assert session.query(Category).filter_by(name='Committed').count() == 1


def test_domain_error_rolls_back_and_propagates(session):
    uow = UnitOfWork(session, 'TEST.DELETE')
    with pytest.raises(NotFoundError):
        with uow:
            session.add(Category(name='Discarded'))
            session.flush()
            raise NotFoundError('Category', 42)
    assert uow.state == ROLLED_BACK
    assert session.query(Category).filter_by(name='Discarded').count() == 0


def test_unexpected_error_becomes_persistence_error(session):
    uow = UnitOfWork(session, 'TEST.UPDATE')
    with pytest.raises(PersistenceError) as ei:
        with uow:
            session.add(Category(name='Half'))
            session.flush()
            raise RuntimeError('disk on fire')
    assert ei.value.detail == 'Operation failed'
    assert ei.value.operation == 'TEST.UPDATE'
    assert isinstance(ei.value.__cause__, RuntimeError)
    assert uow.state == ROLLED_BACK
    assert session.query(Category).filter_by(name='Half').count() == 0


def test_commit_failure_is_rolled_back(session):
    session.add(Category(name='Dup'))
    session.commit()
    uow = UnitOfWork(session, 'TEST.CREATE')
    with pytest.raises(PersistenceError):
        with uow:
            # unique violation only surfaces at commit
            session.add(Category(name='Dup'))
    assert uow.state == ROLLED_BACK
    assert session.query(Category).filter_by(name='Dup').count() == 1


def test_unit_of_work_cannot_be_reused(session):
    uow = UnitOfWork(session, 'TEST.CREATE')
    with uow:
        pass
    with pytest.raises(InvalidTransition):
        uow.__enter__()
    assert UOW_FSM.is_terminal(COMMITTED)
    assert not UOW_FSM.can_transition(ROLLED_BACK, ACTIVE)
