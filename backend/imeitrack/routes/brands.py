# Overview: Flask API routes for brands; parses input and returns JSON responses.

"""
Brand routes.

Reads are open to every authenticated user (the IMEI form needs the
dropdown). Writes require the "brands" menu permission.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_menu_permission
from ..services import brand_service
from ..services.activity_service import client_ip

brands_bp = Blueprint("brands", __name__, url_prefix="/api/brands")


@brands_bp.get("")
@require_auth
def list_brands_route():
    """
    ?all=true returns every active brand unpaginated (for dropdowns).
    Otherwise: q, active_only (default true), page, page_size.
    """
    if request.args.get("all", "false").lower() == "true":
        return jsonify({"items": brand_service.list_active_brands(g.principal)}), 200

    active_only = request.args.get("active_only", "true").lower() != "false"
    result = brand_service.list_brands(
        g.principal,
        q=request.args.get("q"),
        active_only=active_only,
        page=request.args.get("page"),
        page_size=request.args.get("page_size"),
    )
    return jsonify(result), 200


@brands_bp.post("")
@require_auth
@require_menu_permission("brands")
def create_brand_route():
    payload = request.get_json(silent=True) or {}
    brand = brand_service.create_brand(g.principal, payload, ip_address=client_ip(request))
    return jsonify({"brand": brand, "id": brand["id"], "name": brand["name"]}), 201


@brands_bp.put("/<int:brand_id>")
@require_auth
@require_menu_permission("brands")
def update_brand_route(brand_id: int):
    payload = request.get_json(silent=True) or {}
    brand = brand_service.update_brand(g.principal, brand_id, payload, ip_address=client_ip(request))
    return jsonify({"brand": brand, "success": True}), 200


@brands_bp.delete("/<int:brand_id>")
@require_auth
@require_menu_permission("brands")
def delete_brand_route(brand_id: int):
    brand_service.delete_brand(g.principal, brand_id, ip_address=client_ip(request))
    return jsonify({"success": True}), 200
