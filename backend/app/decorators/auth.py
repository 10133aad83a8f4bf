from functools import wraps
from flask import abort
from app.services.policy import has_permissions


def require_permissions(*names: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            # anonymous callers resolve to an empty permission set, never a crash
            if not has_permissions(*names):
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer
