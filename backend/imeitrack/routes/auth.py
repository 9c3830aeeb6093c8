# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login     email + password -> bearer token
- POST /api/auth/logout    revoke the presented token
- GET  /api/auth/me        the current principal
- POST /api/auth/register  public company (admin) sign-up, only when
                           ALLOW_SELF_REGISTRATION is on
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import activity_service
from ..services import auth_service
from ..services import session_service
from ..validation import ConflictError, ValidationError
from ..decorators import bearer_token, require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Self-register a company admin.

    Disabled unless ALLOW_SELF_REGISTRATION is set; otherwise admins are
    created by a superadmin (POST /api/admin) or the CLI.
    """
    if not current_app.config.get("ALLOW_SELF_REGISTRATION"):
        return jsonify({
            "error": "Self-registration is disabled. Contact an administrator to create an account."
        }), 403

    data = request.get_json(silent=True) or {}
    name = data.get("name")
    email = data.get("email")
    password = data.get("password")

    if not all([name, email, password]):
        return jsonify({"error": "name, email and password required"}), 400

    try:
        user = auth_service.register_admin(name, email, password)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError:
        return jsonify({"error": "Email already registered"}), 409

    return jsonify({"id": user.id, "name": user.name, "email": user.email}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns {user, permissions, token, landing_page}. The token must be sent
    as "Authorization: Bearer <token>" on every other route.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = activity_service.client_ip(request)

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        principal = session_service.Principal.from_user(user)
        activity_service.log_login(principal, ip_address=ip_address)

        return jsonify({
            "user": user.to_dict(),
            "permissions": principal.permissions,
            "token": token,
            "landing_page": principal.landing_page,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        revoked = session_service.revoke_session(token, reason="User logout")
        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, menu permissions and landing page."""
    return jsonify({
        "user": g.current_user.to_dict(),
        "permissions": g.principal.permissions,
        "landing_page": g.principal.landing_page,
    }), 200
