from __future__ import annotations
from app.errors import ValidationError

def apply_multi_sort(query, sort_expr: str | None, allowed: dict, tie_breaker, default_desc: bool = True):
    """Apply multi-field sort to a SQLAlchemy query.
    sort_expr: comma-separated tokens, each optionally prefixed with '-'.
    allowed: mapping of field key -> column object.
    tie_breaker: column appended for deterministic ordering (newest first by default).
    """
    tail = tie_breaker.desc() if default_desc else tie_breaker.asc()
    if not sort_expr:
        return query.order_by(tail)
    clauses = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        col = allowed.get(key)
        if col is None:
            raise ValidationError({'sort': f'Invalid sort field {key}'})
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tail)
    return query.order_by(*clauses)
