from app.services.menu import MENU, MenuEntry, filter_menu
from tests.test_utils_seed import seed_admin, seed_user_with_perms


def _labels(entries):
    return [e.label for e in entries]


def test_filter_menu_keeps_declared_order():
    visible = filter_menu(MENU, {'product-list', 'role-list'})
    assert _labels(visible) == ['Dashboard', 'Roles', 'Permissions', 'Products']


def test_filter_menu_is_subsequence_of_menu():
    perms = {'category-list', 'user-list'}
    visible = filter_menu(MENU, perms)
    it = iter(MENU)
    assert all(any(e == m for m in it) for e in visible)
    for e in visible:
        assert e.required_permission is None or e.required_permission in perms


def test_empty_permissions_only_see_unrestricted():
    entries = (MenuEntry('Home', 'home', 'home'), MenuEntry('Secret', 'secret', 'lock', 'secret-list'))
    assert _labels(filter_menu(entries, frozenset())) == ['Home']
    assert _labels(filter_menu(MENU, frozenset())) == ['Dashboard']


def test_menu_endpoint_anonymous(client):
    resp = client.get('/menu')
    assert resp.status_code == 200
    assert [e['label'] for e in resp.get_json()['menu']] == ['Dashboard']


def test_menu_endpoint_for_permitted_users(client, headers_for):
    admin = seed_admin()
    resp = client.get('/menu', headers=headers_for(admin))
    assert [e['label'] for e in resp.get_json()['menu']] == [e.label for e in MENU]

    viewer = seed_user_with_perms('viewer@example.com', ['product-list'])
    resp = client.get('/menu', headers=headers_for(viewer))
    body = resp.get_json()['menu']
    assert [e['label'] for e in body] == ['Dashboard', 'Products']
    assert body[1] == {'label': 'Products', 'route': 'products.index', 'icon': 'package', 'required_permission': 'product-list'}


def test_menu_endpoint_with_invalid_token_is_anonymous(client):
    resp = client.get('/menu', headers={'Authorization': 'Bearer not-a-jwt'})
    assert resp.status_code == 200
    assert [e['label'] for e in resp.get_json()['menu']] == ['Dashboard']


def test_invalid_token_on_protected_route_uses_error_envelope(client):
    resp = client.get('/catalog/products', headers={'Authorization': 'Bearer not-a-jwt'})
    assert resp.status_code == 403
    assert resp.get_json()['error']['detail'] == 'Missing permission'
