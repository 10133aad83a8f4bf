from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, func
from app.decorators.auth import require_permissions
from app.utils.listing import apply_pagination, make_list_response, format_timestamp
from app.utils.filters import apply_filters
from app.utils.sorting import apply_multi_sort
from app.models.category import Category
from app.models.product import Product
from app.services import catalog as catalog_service
from app.services.policy import current_auth
from app.services.store import EntityStore
from app import get_db

cat_bp = Blueprint('catalog', __name__)


def _category_json(c: Category, product_count: int | None = None):
    if product_count is None:
        product_count = catalog_service.product_count(get_db(), c.id)
    return {
        'id': c.id,
        'name': c.name,
        'description': c.description,
        'status': c.status,
        'product_count': product_count,
        'created_at': format_timestamp(c.created_at),
        'updated_at': format_timestamp(c.updated_at),
    }


def _product_json(p: Product):
    return {
        'id': p.id,
        'name': p.name,
        'description': p.description,
        'price': str(p.price),
        'stock': p.stock,
        'status': p.status,
        'category_id': p.category_id,
        'category': {'id': p.category.id, 'name': p.category.name} if p.category else None,
        'user_id': p.user_id,
        'created_at': format_timestamp(p.created_at),
        'updated_at': format_timestamp(p.updated_at),
    }


def _payload():
    data = request.get_json(silent=True)
    if data is None:
        abort(400, description='JSON body required')
    return data


# --- Categories ---

@cat_bp.get('/categories')
@require_permissions('category-list')
def list_categories():
    session = get_db()
    specs = {
        'name': {'op': lambda q, v: q.filter(Category.name.ilike(f'%{v}%'))},
        'status': {'op': lambda q, v: q.filter(Category.status==v), 'validate': lambda v: v in Category.ALL_STATUSES},
    }
    q = apply_filters(session.query(Category), specs, request.args)
    allowed = {'name': Category.name, 'status': Category.status, 'updated_at': Category.updated_at, 'id': Category.id}
    q = apply_multi_sort(q, request.args.get('sort'), allowed, Category.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    counts = {}
    if rows:
        counts = dict(session.execute(
            select(Product.category_id, func.count(Product.id))
            .where(Product.category_id.in_([c.id for c in rows]))
            .group_by(Product.category_id)
        ).all())
    return make_list_response([_category_json(c, counts.get(c.id, 0)) for c in rows], total, limit, offset)


@cat_bp.post('/categories')
@require_permissions('category-create')
def create_category():
    category = catalog_service.create_category(get_db(), _payload(), actor=current_auth())
    return _category_json(category, 0), 201


@cat_bp.get('/categories/<int:category_id>')
@require_permissions('category-list')
def show_category(category_id: int):
    return {'category': _category_json(EntityStore(get_db(), Category).find_or_fail(category_id))}


@cat_bp.put('/categories/<int:category_id>')
@require_permissions('category-edit')
def update_category(category_id: int):
    category = catalog_service.update_category(get_db(), category_id, _payload(), actor=current_auth())
    return _category_json(category)


@cat_bp.delete('/categories/<int:category_id>')
@require_permissions('category-delete')
def delete_category(category_id: int):
    catalog_service.delete_category(get_db(), category_id, actor=current_auth())
    return {'success': 'Category deleted successfully'}


# --- Products ---

@cat_bp.get('/products')
@require_permissions('product-list')
def list_products():
    session = get_db()
    specs = {
        'name': {'op': lambda q, v: q.filter(Product.name.ilike(f'%{v}%'))},
        'status': {'op': lambda q, v: q.filter(Product.status==v), 'validate': lambda v: v in Product.ALL_STATUSES},
        'category_id': {'coerce': int, 'op': lambda q, v: q.filter(Product.category_id==v)},
    }
    q = apply_filters(session.query(Product), specs, request.args)
    allowed = {
        'price': Product.price,
        'stock': Product.stock,
        'name': Product.name,
        'updated_at': Product.updated_at,
        'id': Product.id
    }
    q = apply_multi_sort(q, request.args.get('sort'), allowed, Product.id)
    paged_q, total, limit, offset = apply_pagination(q)
    return make_list_response([_product_json(p) for p in paged_q.all()], total, limit, offset)


@cat_bp.post('/products')
@require_permissions('product-create')
def create_product():
    product = catalog_service.create_product(get_db(), _payload(), actor=current_auth())
    return _product_json(product), 201


@cat_bp.get('/products/<int:product_id>')
@require_permissions('product-list')
def show_product(product_id: int):
    return {'product': _product_json(EntityStore(get_db(), Product).find_or_fail(product_id))}


@cat_bp.put('/products/<int:product_id>')
@require_permissions('product-edit')
def update_product(product_id: int):
    product = catalog_service.update_product(get_db(), product_id, _payload(), actor=current_auth())
    return _product_json(product)


@cat_bp.delete('/products/<int:product_id>')
@require_permissions('product-delete')
def delete_product(product_id: int):
    catalog_service.delete_product(get_db(), product_id, actor=current_auth())
    return {'success': 'Product deleted successfully'}
