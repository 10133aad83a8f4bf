"""Declarative input validation shared by create and update.

Each entity declares a Schema of FieldSpecs; ``validate`` walks it once and
either returns cleaned values or raises a single ValidationError carrying
every field message. On update the row being edited is passed as
``instance``: omitted fields fall back to its stored values and uniqueness
checks exclude its id.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from email_validator import validate_email, EmailNotValidError

from app.errors import ValidationError
from app.services.store import EntityStore

TWO_PLACES = Decimal('0.01')
# column limits: 32-bit Integer, Numeric(10, 2)
INT_MAX = 2**31 - 1
PRICE_MAX = Decimal('99999999.99')


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str = 'string'
    required: bool = False
    unique: bool = False
    max_length: Optional[int] = None
    min_length: Optional[int] = None
    min_value: Any = None
    max_value: Any = None
    choices: Tuple[str, ...] = ()
    default: Any = None
    references: Any = None
    # False for inputs that are not a column of the model (password, relation lists)
    stored: bool = True


class Schema:
    def __init__(self, model, *fields: FieldSpec):
        self.model = model
        self.fields = fields

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


def _as_string(spec: FieldSpec, raw):
    if not isinstance(raw, str):
        raise ValueError(f'{spec.name} must be a string')
    value = raw.strip() if spec.kind != 'text' else raw
    if spec.min_length is not None and len(value) < spec.min_length:
        raise ValueError(f'{spec.name} must be at least {spec.min_length} characters')
    if spec.max_length is not None and len(value) > spec.max_length:
        raise ValueError(f'{spec.name} may not be greater than {spec.max_length} characters')
    return value


def _as_email(spec: FieldSpec, raw):
    value = _as_string(spec, raw)
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError(f'{spec.name} must be a valid email address')
    return value


def _check_bounds(spec: FieldSpec, value):
    if spec.min_value is not None and value < spec.min_value:
        raise ValueError(f'{spec.name} must be at least {spec.min_value}')
    if spec.max_value is not None and value > spec.max_value:
        raise ValueError(f'{spec.name} may not be greater than {spec.max_value}')
    return value


def _as_decimal(spec: FieldSpec, raw):
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str, Decimal)):
        raise ValueError(f'{spec.name} must be a number')
    try:
        value = Decimal(str(raw).strip())
        if not value.is_finite():
            raise InvalidOperation
        value = value.quantize(TWO_PLACES)
    except InvalidOperation:
        raise ValueError(f'{spec.name} must be a number')
    return _check_bounds(spec, value)


def _as_integer(spec: FieldSpec, raw):
    if isinstance(raw, bool):
        raise ValueError(f'{spec.name} must be an integer')
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().lstrip('-').isdigit():
        value = int(raw.strip())
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    else:
        raise ValueError(f'{spec.name} must be an integer')
    return _check_bounds(spec, value)


def _as_choice(spec: FieldSpec, raw):
    if raw not in spec.choices:
        raise ValueError(f'{spec.name} must be one of: {", ".join(spec.choices)}')
    return raw


def _as_list(spec: FieldSpec, raw):
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f'{spec.name} must be an array')
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, (int, str)):
            raise ValueError(f'{spec.name} entries must be ids or names')
    return list(raw)


COERCERS = {
    'string': _as_string,
    'text': _as_string,
    'email': _as_email,
    'decimal': _as_decimal,
    'integer': _as_integer,
    'choice': _as_choice,
    'ref': _as_integer,
    'list': _as_list,
}


def validate(session, schema: Schema, data, instance=None) -> Dict[str, Any]:
    """Validate ``data`` against ``schema``; return cleaned values keyed by field name."""
    if not isinstance(data, dict):
        raise ValidationError({'_payload': 'payload must be a JSON object'})
    store = EntityStore(session, schema.model)
    exclude_id = instance.id if instance is not None else None
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}
    for spec in schema.fields:
        if spec.name in data:
            raw = data[spec.name]
        elif instance is not None and spec.stored:
            raw = getattr(instance, spec.name)
        else:
            raw = None
        if _is_blank(raw):
            if spec.default is not None:
                cleaned[spec.name] = spec.default
            elif spec.required:
                errors[spec.name] = f'{spec.name} is required'
            else:
                cleaned[spec.name] = None
            continue
        try:
            value = COERCERS[spec.kind](spec, raw)
        except ValueError as e:
            errors[spec.name] = str(e)
            continue
        if spec.unique and store.find_by_unique(spec.name, value, exclude_id=exclude_id) is not None:
            errors[spec.name] = f'{spec.name} has already been taken'
            continue
        if spec.kind == 'ref' and session.get(spec.references, value) is None:
            errors[spec.name] = f'selected {spec.name} is invalid'
            continue
        cleaned[spec.name] = value
    if errors:
        raise ValidationError(errors)
    return cleaned

__all__ = ["FieldSpec", "Schema", "validate", "INT_MAX", "PRICE_MAX"]
