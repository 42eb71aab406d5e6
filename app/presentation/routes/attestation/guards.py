"""
Access guards for the attestation API
"""

from flask import jsonify, request
from flask_login import current_user

from app import login_manager
from app.logger import get_logger

logger = get_logger("asset_attestation.routes.attestation.guards")

ADMIN_ROLES = ('admin', 'attestation_coordinator')
VIEW_ROLES = ('admin', 'attestation_coordinator', 'manager')


def require_roles(*roles):
    """Decorator to require an authenticated user holding one of roles"""
    def decorator(f):
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()
            if not current_user.has_role(*roles):
                logger.warning(f"User {current_user.email} ({current_user.role}) denied access to {request.path}")
                return jsonify({'error': 'Insufficient permissions'}), 403
            return f(*args, **kwargs)
        decorated_function.__name__ = f.__name__
        decorated_function.__doc__ = f.__doc__
        return decorated_function
    return decorator


def json_body() -> dict:
    """Request JSON object, or an empty dict when the body is absent"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
