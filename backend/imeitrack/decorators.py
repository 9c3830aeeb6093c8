# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.principal: the authenticated Principal {id, name, role, permissions}
    - g.current_user: the User row behind it
    - g.session_context: the full SessionContext
    - g.token: the plaintext bearer token of this request

    Returns 401 if the header is missing or the token is unknown, expired,
    idle too long or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.principal = context.principal
        g.current_user = context.user
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require one of the given roles. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "Authentication required"}), 401
            if principal.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_menu_permission(code: str):
    """
    Require a menu permission flag. Superadmins always pass.

    Use after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "Authentication required"}), 401
            if not principal.can_open(code):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": code,
                    "message": f"Requires the '{code}' menu permission",
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator
