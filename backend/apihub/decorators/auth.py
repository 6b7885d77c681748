from functools import wraps
from flask import abort, current_app
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from apihub.services.policy import current_permissions


def require_permissions(*codes: str):
    """Require a valid JWT whose ``perms`` claim holds every code (403 otherwise)."""
    required = frozenset(codes)

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            missing = required - current_permissions()
            if missing:
                current_app.logger.info('User %s denied %s: missing %s', get_jwt_identity(), fn.__name__, sorted(missing))
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer
