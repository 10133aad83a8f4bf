from app.models.category import Category
from tests.test_utils_seed import create_product, ensure_category, seed_admin, seed_user_with_perms


def test_category_product_lifecycle(client, headers_for):
    headers = headers_for(seed_admin())
    resp = client.post('/catalog/categories', json={'name': 'Electronics', 'status': 'active'}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    cat = resp.get_json()
    assert cat['product_count'] == 0

    resp = client.post('/catalog/products', json={'name': 'Phone', 'price': 100, 'category_id': cat['id']}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    product_id = resp.get_json()['id']

    show = client.get(f"/catalog/categories/{cat['id']}", headers=headers).get_json()
    assert show['category']['product_count'] == 1

    refused = client.delete(f"/catalog/categories/{cat['id']}", headers=headers)
    assert refused.status_code == 403
    assert 'Cannot delete category with associated products' in refused.get_json()['error']['detail']

    assert client.delete(f'/catalog/products/{product_id}', headers=headers).status_code == 200
    resp = client.delete(f"/catalog/categories/{cat['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json() == {'success': 'Category deleted successfully'}
    assert client.get(f"/catalog/categories/{cat['id']}", headers=headers).status_code == 404


def test_duplicate_name_update_leaves_row_unchanged(client, headers_for, session):
    headers = headers_for(seed_admin())
    books = ensure_category('Books')
    ensure_category('Music')
    resp = client.put(f'/catalog/categories/{books.id}', json={'name': 'Music'}, headers=headers)
    assert resp.status_code == 422
    assert 'name' in resp.get_json()['error']['fields']
    session.expire_all()
    assert session.get(Category, books.id).name == 'Books'


def test_update_to_own_name_succeeds(client, headers_for):
    headers = headers_for(seed_admin())
    books = ensure_category('Books')
    resp = client.put(f'/catalog/categories/{books.id}', json={'name': 'Books', 'status': 'inactive'}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    assert resp.get_json()['status'] == 'inactive'


def test_list_categories_filters_and_counts(client, headers_for):
    user = seed_user_with_perms('lister@example.com', ['category-list'])
    headers = headers_for(user)
    ensure_category('Garden', status='active')
    ensure_category('Gadgets', status='inactive')
    resp = client.get('/catalog/categories?status=inactive', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert [c['name'] for c in body['data']] == ['Gadgets']
    assert body['pagination']['total'] == 1
    assert body['data'][0]['product_count'] == 0
    bad = client.get('/catalog/categories?status=archived', headers=headers)
    assert bad.status_code == 422


def test_category_create_requires_permission(client, headers_for):
    user = seed_user_with_perms('lister@example.com', ['category-list'])
    resp = client.post('/catalog/categories', json={'name': 'Nope'}, headers=headers_for(user))
    assert resp.status_code == 403


def test_list_etag_conditional(client, headers_for):
    headers = headers_for(seed_admin())
    ensure_category('Cached')
    first = client.get('/catalog/categories', headers=headers)
    etag = first.headers['ETag']
    second = client.get('/catalog/categories', headers={**headers, 'If-None-Match': etag})
    assert second.status_code == 304
    ensure_category('Fresh')
    third = client.get('/catalog/categories', headers={**headers, 'If-None-Match': etag})
    assert third.status_code == 200


def test_list_etag_changes_with_product_count(client, headers_for):
    headers = headers_for(seed_admin())
    cat = ensure_category('Counted')
    etag = client.get('/catalog/categories', headers=headers).headers['ETag']
    create_product('Phone', category=cat)
    resp = client.get('/catalog/categories', headers={**headers, 'If-None-Match': etag})
    assert resp.status_code == 200
    assert resp.get_json()['data'][0]['product_count'] == 1


def test_list_etag_changes_with_same_second_edit(client, headers_for):
    headers = headers_for(seed_admin())
    cat = ensure_category('Edited')
    etag = client.get('/catalog/categories', headers=headers).headers['ETag']
    client.put(f'/catalog/categories/{cat.id}', json={'description': 'changed', 'status': 'inactive'}, headers=headers)
    resp = client.get('/catalog/categories', headers={**headers, 'If-None-Match': etag})
    assert resp.status_code == 200
    assert resp.get_json()['data'][0]['status'] == 'inactive'
