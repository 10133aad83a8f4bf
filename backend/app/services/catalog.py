from __future__ import annotations
import logging

from app.errors import ConflictError
from app.models.category import Category
from app.models.product import Product
from app.services.audit import add_audit
from app.services.store import EntityStore
from app.services.unit_of_work import UnitOfWork
from app.utils.validation import INT_MAX, PRICE_MAX, FieldSpec, Schema, validate

logger = logging.getLogger(__name__)

CATEGORY_SCHEMA = Schema(
    Category,
    FieldSpec('name', required=True, unique=True, max_length=255),
    FieldSpec('description', kind='text'),
    FieldSpec('status', kind='choice', choices=Category.ALL_STATUSES, default=Category.STATUS_ACTIVE),
)

PRODUCT_SCHEMA = Schema(
    Product,
    FieldSpec('name', required=True, max_length=255),
    FieldSpec('description', kind='text'),
    FieldSpec('price', kind='decimal', required=True, min_value=0, max_value=PRICE_MAX),
    FieldSpec('stock', kind='integer', min_value=0, max_value=INT_MAX, default=0),
    FieldSpec('status', kind='choice', choices=Product.ALL_STATUSES, default=Product.STATUS_ACTIVE),
    FieldSpec('category_id', kind='ref', references=Category, min_value=1, max_value=INT_MAX),
)


def product_count(session, category_id: int) -> int:
    return EntityStore(session, Product).count_where(Product.category_id, category_id)


# ---------------- Categories ---------------- #

def create_category(session, data, actor=None) -> Category:
    with UnitOfWork(session, 'CATEGORY.CREATE'):
        values = validate(session, CATEGORY_SCHEMA, data)
        category = EntityStore(session, Category).insert(Category(**values))
        add_audit(session, 'CATEGORY.CREATE', 'Category', category.id, {'name': category.name}, actor=actor)
    return category


def update_category(session, category_id: int, data, actor=None) -> Category:
    store = EntityStore(session, Category)
    with UnitOfWork(session, 'CATEGORY.UPDATE'):
        category = store.find_or_fail(category_id)
        values = validate(session, CATEGORY_SCHEMA, data, instance=category)
        store.update(category, values)
        add_audit(session, 'CATEGORY.UPDATE', 'Category', category.id, {'name': category.name, 'status': category.status}, actor=actor)
    return category


def delete_category(session, category_id: int, actor=None):
    store = EntityStore(session, Category)
    with UnitOfWork(session, 'CATEGORY.DELETE'):
        category = store.find_or_fail(category_id)
        count = product_count(session, category.id)
        if count:
            logger.info('refused delete of category %s: %d products', category.id, count)
            raise ConflictError(f'Cannot delete category with associated products (category has {count} associated products)')
        store.delete(category)
        add_audit(session, 'CATEGORY.DELETE', 'Category', category_id, {'name': category.name}, actor=actor)


# ---------------- Products ---------------- #

def create_product(session, data, actor=None) -> Product:
    with UnitOfWork(session, 'PRODUCT.CREATE'):
        values = validate(session, PRODUCT_SCHEMA, data)
        product = Product(user_id=getattr(actor, 'user_id', None), **values)
        EntityStore(session, Product).insert(product)
        add_audit(session, 'PRODUCT.CREATE', 'Product', product.id, {'name': product.name, 'price': str(product.price)}, actor=actor)
    return product


def update_product(session, product_id: int, data, actor=None) -> Product:
    store = EntityStore(session, Product)
    with UnitOfWork(session, 'PRODUCT.UPDATE'):
        product = store.find_or_fail(product_id)
        values = validate(session, PRODUCT_SCHEMA, data, instance=product)
        store.update(product, values)
        add_audit(session, 'PRODUCT.UPDATE', 'Product', product.id, {'name': product.name, 'price': str(product.price), 'status': product.status}, actor=actor)
    return product


def delete_product(session, product_id: int, actor=None):
    store = EntityStore(session, Product)
    with UnitOfWork(session, 'PRODUCT.DELETE'):
        product = store.find_or_fail(product_id)
        name = product.name
        store.delete(product)
        add_audit(session, 'PRODUCT.DELETE', 'Product', product_id, {'name': name}, actor=actor)

__all__ = [
    'CATEGORY_SCHEMA', 'PRODUCT_SCHEMA', 'product_count',
    'create_category', 'update_category', 'delete_category',
    'create_product', 'update_product', 'delete_product',
]
