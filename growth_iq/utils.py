import functools
from flask import jsonify, abort
from flask_login import current_user


def api_response(success=True, data=None, error=None, status=200):
    """Standardized JSON response for all API routes."""
    response = {
        'success': success,
        'data': data,
        'error': error
    }
    return jsonify(response), status


def permission_required(permission):
    """403 unless the logged-in staff member holds ``permission``. Use under @login_required."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not current_user.has_permission(permission):
                abort(403)
            return func(*args, **kwargs)
        return wrapper
    return decorator
