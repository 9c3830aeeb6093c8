# Overview: Flask API routes for the caller's own profile.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..services import profile_service
from ..services.activity_service import client_ip

profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@require_auth
def get_profile_route():
    return jsonify({"user": profile_service.get_profile(g.principal)}), 200


@profile_bp.put("")
@require_auth
def update_profile_route():
    """Body: name, email, current_password, new_password (all optional)."""
    payload = request.get_json(silent=True) or {}
    user = profile_service.update_profile(
        g.principal,
        payload,
        ip_address=client_ip(request),
        current_token=g.token,
    )
    return jsonify({"user": user, "success": True, "message": "Profile updated successfully"}), 200
