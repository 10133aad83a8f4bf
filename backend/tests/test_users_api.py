from app.models.authz import User, UserRole
from app.models.product import Product
from tests.test_utils_seed import create_product, ensure_role, ensure_user, ensure_user_role_assignment, seed_admin


def test_create_user_with_roles(client, headers_for):
    headers = headers_for(seed_admin())
    editor = ensure_role('Editor', ['product-list', 'product-edit'])
    resp = client.post('/iam/users', json={
        'name': 'Ed', 'email': 'ed@example.com', 'password': 'secret-pass', 'roles': ['Editor'],
    }, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['roles'] == [{'id': editor.id, 'name': 'Editor'}]
    assert 'password' not in body and 'password_hash' not in body

    detail = client.get(f"/iam/users/{body['id']}", headers=headers).get_json()['user']
    assert detail['permissions'] == ['product-edit', 'product-list']

    login = client.post('/iam/auth/login', json={'email': 'ed@example.com', 'password': 'secret-pass'})
    assert login.status_code == 200


def test_duplicate_email_rejected(client, headers_for):
    headers = headers_for(seed_admin())
    ensure_user('dup@example.com')
    resp = client.post('/iam/users', json={'name': 'Dup', 'email': 'dup@example.com', 'password': 'secret-pass'}, headers=headers)
    assert resp.status_code == 422
    assert resp.get_json()['error']['fields']['email'] == 'email has already been taken'


def test_update_without_password_keeps_hash(client, headers_for, session):
    headers = headers_for(seed_admin())
    user = ensure_user('keep@example.com', password='original-pass')
    old_hash = user.password_hash
    resp = client.put(f'/iam/users/{user.id}', json={'name': 'Kept', 'password': ''}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    session.expire_all()
    fresh = session.get(User, user.id)
    assert fresh.name == 'Kept'
    assert fresh.password_hash == old_hash

    resp = client.put(f'/iam/users/{user.id}', json={'password': 'brand-new-pass'}, headers=headers)
    assert resp.status_code == 200
    session.expire_all()
    assert session.get(User, user.id).verify_password('brand-new-pass')


def test_update_user_roles_replaces_assignment(client, headers_for, session):
    headers = headers_for(seed_admin())
    user = ensure_user('shift@example.com')
    ensure_user_role_assignment(user, ensure_role('A', ['product-list']))
    b = ensure_role('B', ['category-list'])
    resp = client.put(f'/iam/users/{user.id}', json={'roles': [b.id]}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    assert resp.get_json()['roles'] == [{'id': b.id, 'name': 'B'}]


def test_admin_user_cannot_be_deleted(client, headers_for, session):
    admin = seed_admin()
    assert admin.id == 1
    resp = client.delete('/iam/users/1', headers=headers_for(admin))
    assert resp.status_code == 403
    assert resp.get_json()['error']['detail'] == 'Cannot delete admin user'
    session.expire_all()
    assert session.get(User, 1) is not None


def test_delete_user_detaches_roles_and_products(client, headers_for, session):
    headers = headers_for(seed_admin())
    user = ensure_user('gone@example.com')
    ensure_user_role_assignment(user, ensure_role('Temp', ['product-list']))
    prod = create_product('Orphan', owner=user)
    resp = client.delete(f'/iam/users/{user.id}', headers=headers)
    assert resp.status_code == 200
    assert resp.get_json() == {'success': 'User deleted successfully'}
    session.expire_all()
    assert session.get(User, user.id) is None
    assert session.query(UserRole).filter_by(user_id=user.id).count() == 0
    assert session.get(Product, prod.id).user_id is None


def test_missing_user_is_404(client, headers_for):
    headers = headers_for(seed_admin())
    resp = client.get('/iam/users/999', headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()['error'] == {'status': 404, 'title': 'Not Found', 'detail': 'User 999 not found'}


def test_update_without_roles_clears_assignment(client, headers_for, session):
    headers = headers_for(seed_admin())
    user = ensure_user('strip@example.com')
    ensure_user_role_assignment(user, ensure_role('A', ['product-list']))
    resp = client.put(f'/iam/users/{user.id}', json={'name': 'Stripped', 'email': 'strip@example.com'}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    assert resp.get_json()['roles'] == []
    session.expire_all()
    assert session.query(UserRole).filter_by(user_id=user.id).count() == 0
