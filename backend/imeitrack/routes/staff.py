# Overview: Flask API routes for staff accounts; parses input and returns JSON responses.

"""
Staff management routes.

Superadmins and admins only. Admins additionally need the "staff" menu
permission and only ever see the staff they created.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_menu_permission, require_role
from ..permissions import Role
from ..services import staff_service
from ..services.activity_service import client_ip

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
@require_auth
@require_role(Role.SUPERADMIN, Role.ADMIN)
@require_menu_permission("staff")
def list_staff_route():
    result = staff_service.list_staff(
        g.principal,
        request.args.get("q"),
        page=request.args.get("page"),
        page_size=request.args.get("page_size"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
    )
    return jsonify(result), 200


@staff_bp.post("")
@require_auth
@require_role(Role.SUPERADMIN, Role.ADMIN)
@require_menu_permission("staff")
def create_staff_route():
    """Body: name, email, password, permissions; superadmins also send company_id."""
    payload = request.get_json(silent=True) or {}
    staff = staff_service.create_staff(g.principal, payload, ip_address=client_ip(request))
    return jsonify({"user": staff, "id": staff["id"]}), 201


@staff_bp.get("/<int:staff_id>")
@require_auth
@require_role(Role.SUPERADMIN, Role.ADMIN)
@require_menu_permission("staff")
def get_staff_route(staff_id: int):
    return jsonify({"user": staff_service.get_staff(g.principal, staff_id)}), 200


@staff_bp.put("/<int:staff_id>")
@require_auth
@require_role(Role.SUPERADMIN, Role.ADMIN)
@require_menu_permission("staff")
def update_staff_route(staff_id: int):
    payload = request.get_json(silent=True) or {}
    staff = staff_service.update_staff(g.principal, staff_id, payload, ip_address=client_ip(request))
    return jsonify({"user": staff, "success": True}), 200


@staff_bp.delete("/<int:staff_id>")
@require_auth
@require_role(Role.SUPERADMIN, Role.ADMIN)
@require_menu_permission("staff")
def delete_staff_route(staff_id: int):
    staff_service.delete_staff(g.principal, staff_id, ip_address=client_ip(request))
    return jsonify({"success": True}), 200
