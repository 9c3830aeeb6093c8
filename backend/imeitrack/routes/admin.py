# Overview: Flask API routes for admin (company) accounts; parses input and returns JSON responses.

"""
Admin routes for company management.

All endpoints are superadmin-only. Superadmin actions are not written to
the activity log.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..permissions import Role
from ..services import admin_service
from ..services.activity_service import client_ip

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("")
@require_auth
@require_role(Role.SUPERADMIN)
def list_admins_route():
    result = admin_service.list_admins(
        g.principal,
        request.args.get("q"),
        page=request.args.get("page"),
        page_size=request.args.get("page_size"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
    )
    return jsonify(result), 200


@admin_bp.post("")
@require_auth
@require_role(Role.SUPERADMIN)
def create_admin_route():
    """Body: name, email, password, permissions."""
    payload = request.get_json(silent=True) or {}
    admin = admin_service.create_admin(g.principal, payload, ip_address=client_ip(request))
    return jsonify({"user": admin, "id": admin["id"]}), 201


@admin_bp.get("/<int:admin_id>")
@require_auth
@require_role(Role.SUPERADMIN)
def get_admin_route(admin_id: int):
    return jsonify({"user": admin_service.get_admin(g.principal, admin_id)}), 200


@admin_bp.put("/<int:admin_id>")
@require_auth
@require_role(Role.SUPERADMIN)
def update_admin_route(admin_id: int):
    payload = request.get_json(silent=True) or {}
    admin = admin_service.update_admin(g.principal, admin_id, payload, ip_address=client_ip(request))
    return jsonify({"user": admin, "success": True}), 200


@admin_bp.delete("/<int:admin_id>")
@require_auth
@require_role(Role.SUPERADMIN)
def delete_admin_route(admin_id: int):
    admin_service.delete_admin(g.principal, admin_id, ip_address=client_ip(request))
    return jsonify({"success": True}), 200


@admin_bp.get("/<int:admin_id>/details")
@require_auth
@require_role(Role.SUPERADMIN)
def company_details_route(admin_id: int):
    """Staff/IMEI/sold counts, stock statistics and recent rows for one company."""
    return jsonify(admin_service.company_details(g.principal, admin_id)), 200
