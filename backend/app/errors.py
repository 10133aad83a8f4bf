"""Domain error taxonomy shared by services and the HTTP error handler.

Services raise these; ``create_app`` renders every one of them with the same
``{"error": {...}}`` envelope used for werkzeug HTTP errors.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class DomainError(Exception):
    status = 500
    title = 'Error'

    def __init__(self, detail: str = '', *, fields: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.detail = detail
        self.fields = fields or {}

    def to_payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            'status': self.status,
            'title': self.title,
            'detail': self.detail,
        }
        if self.fields:
            body['fields'] = dict(self.fields)
        return {'error': body}


class ValidationError(DomainError):
    """Bad, missing or duplicate input. ``fields`` maps field name -> message."""
    status = 422
    title = 'Unprocessable Entity'

    def __init__(self, fields: Dict[str, str], detail: str = 'The given data was invalid'):
        super().__init__(detail, fields=fields)


class NotFoundError(DomainError):
    status = 404
    title = 'Not Found'

    def __init__(self, entity: str, entity_id: Any = None):
        detail = f'{entity} not found' if entity_id is None else f'{entity} {entity_id} not found'
        super().__init__(detail)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainError):
    # business-rule refusals surface as 403 to the client
    status = 403
    title = 'Forbidden'


class PersistenceError(DomainError):
    status = 500
    title = 'Internal Server Error'

    def __init__(self, operation: str):
        super().__init__('Operation failed')
        self.operation = operation


__all__ = ['DomainError', 'ValidationError', 'NotFoundError', 'ConflictError', 'PersistenceError']
