import pytest
from types import SimpleNamespace
from app.config.pagination import DEFAULT_LIMIT, MAX_LIMIT, normalize_pagination
from app.config.settings import parse_id_set, split_csv
from app.errors import ConflictError
from app.services.guards import ProtectedRows


def test_protected_rows_from_config():
    guard = ProtectedRows.from_config({'PROTECTED_USER_IDS': parse_id_set('1, 7'), 'PROTECTED_ROLE_NAMES': frozenset(split_csv('Admin,Owner'))})
    assert guard.is_protected_user(SimpleNamespace(id=7))
    assert not guard.is_protected_user(SimpleNamespace(id=2))
    assert guard.is_protected_role(SimpleNamespace(id=5, name='Owner', is_system=False))
    assert guard.is_protected_role(SimpleNamespace(id=6, name='Custom', is_system=True))


def test_guard_messages():
    guard = ProtectedRows(user_ids=frozenset({1}), role_names=frozenset({'Admin'}))
    with pytest.raises(ConflictError, match='Cannot delete admin user'):
        guard.assert_user_deletable(SimpleNamespace(id=1))
    admin = SimpleNamespace(id=1, name='Admin', is_system=False)
    with pytest.raises(ConflictError, match='Cannot delete Admin role'):
        guard.assert_role_deletable(admin)
    with pytest.raises(ConflictError):
        guard.assert_role_renamable(admin, 'Boss')
    # keeping the same name is not a rename
    guard.assert_role_renamable(admin, 'Admin')
    guard.assert_user_deletable(SimpleNamespace(id=2))


def test_parse_id_set_rejects_garbage():
    assert parse_id_set('') == frozenset()
    assert parse_id_set([1, '2']) == {1, 2}
    with pytest.raises(ValueError):
        parse_id_set('1,admin')


def test_normalize_pagination_bounds():
    assert normalize_pagination(None, None) == (DEFAULT_LIMIT, 0)
    assert normalize_pagination('1000', '-5') == (MAX_LIMIT, 0)
    with pytest.raises(ValueError):
        normalize_pagination('ten', None)
