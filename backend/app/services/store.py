"""Thin persistence facade over a SQLAlchemy session for a single model.

Every method only flushes; commit/rollback belongs to ``UnitOfWork`` so that
calls compose inside one transaction.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
from sqlalchemy import select, func

from app.errors import NotFoundError


class EntityStore:
    def __init__(self, session, model, label: Optional[str] = None):
        self.session = session
        self.model = model
        self.label = label or model.__name__

    def find(self, entity_id):
        if entity_id is None:
            return None
        return self.session.get(self.model, entity_id)

    def find_or_fail(self, entity_id):
        obj = self.find(entity_id)
        if obj is None:
            raise NotFoundError(self.label, entity_id)
        return obj

    def find_by_unique(self, field: str, value: Any, exclude_id: Optional[int] = None):
        column = getattr(self.model, field)
        q = select(self.model).where(column == value)
        if exclude_id is not None:
            q = q.where(self.model.id != exclude_id)
        return self.session.execute(q.limit(1)).scalars().first()

    def insert(self, entity):
        self.session.add(entity)
        self.session.flush()
        return entity

    def update(self, entity, values: Dict[str, Any]):
        for key, value in values.items():
            setattr(entity, key, value)
        self.session.flush()
        return entity

    def delete(self, entity):
        self.session.delete(entity)
        self.session.flush()

    def count_where(self, column, value) -> int:
        q = select(func.count()).select_from(column.class_).where(column == value)
        return int(self.session.execute(q).scalar_one())

__all__ = ['EntityStore']
