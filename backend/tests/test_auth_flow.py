from flask_jwt_extended import decode_token
from tests.test_utils_seed import ensure_role, ensure_user, ensure_user_role_assignment


def _login(client, email, password):
    return client.post('/iam/auth/login', json={'email': email, 'password': password})


def test_login_and_me(client, app_instance):
    user = ensure_user('flow@example.com', password='flow-pass-1')
    role = ensure_role('Editor', ['product-list', 'product-edit'])
    ensure_user_role_assignment(user, role)

    resp = _login(client, 'flow@example.com', 'flow-pass-1')
    assert resp.status_code == 200
    token = resp.get_json()['access_token']
    with app_instance.app_context():
        claims = decode_token(token)
    assert claims['sub'] == str(user.id)
    assert claims['perms'] == ['product-edit', 'product-list']

    me = client.get('/iam/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    body = me.get_json()
    assert body['email'] == 'flow@example.com'
    assert body['roles'] == [role.id]
    assert body['perms'] == ['product-edit', 'product-list']


def test_bad_credentials(client):
    ensure_user('flow@example.com', password='flow-pass-1')
    assert _login(client, 'flow@example.com', 'wrong').status_code == 401
    assert _login(client, 'nobody@example.com', 'flow-pass-1').status_code == 401
    assert _login(client, 'flow@example.com', '').status_code == 400


def test_me_requires_token(client):
    assert client.get('/iam/auth/me').status_code == 401


def test_permissions_resolved_per_request(client, headers_for, session):
    # a revoked role takes effect without a new token
    user = ensure_user('revoked@example.com')
    role = ensure_role('Viewer', ['product-list'])
    ensure_user_role_assignment(user, role)
    headers = headers_for(user)
    assert client.get('/catalog/products', headers=headers).status_code == 200
    session.delete(role)
    session.commit()
    assert client.get('/catalog/products', headers=headers).status_code == 403
