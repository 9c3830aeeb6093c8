# Overview: Flask API routes for sold records; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import sold_service
from ..services.activity_service import client_ip

sold_bp = Blueprint("sold", __name__, url_prefix="/api/sold")


@sold_bp.get("")
@require_auth
def list_sold_route():
    """Query params: q, page, page_size."""
    result = sold_service.list_sold_records(
        g.principal,
        request.args.get("q"),
        page=request.args.get("page"),
        page_size=request.args.get("page_size"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
    )
    return jsonify(result), 200


@sold_bp.post("")
@require_auth
def create_sold_route():
    """Mark an IMEI as sold. Body: imei_id, sold_name, sold_amount, sold_date, store."""
    payload = request.get_json(silent=True) or {}
    sold = sold_service.create_sold_record(g.principal, payload, ip_address=client_ip(request))
    return jsonify({"record": sold, "id": sold["id"]}), 201


@sold_bp.get("/<int:sold_id>")
@require_auth
def get_sold_route(sold_id: int):
    return jsonify({"record": sold_service.get_sold_record(g.principal, sold_id)}), 200


@sold_bp.put("/<int:sold_id>")
@require_auth
def update_sold_route(sold_id: int):
    payload = request.get_json(silent=True) or {}
    sold = sold_service.update_sold_record(g.principal, sold_id, payload, ip_address=client_ip(request))
    return jsonify({"record": sold, "success": True}), 200


@sold_bp.delete("/<int:sold_id>")
@require_auth
def delete_sold_route(sold_id: int):
    sold_service.delete_sold_record(g.principal, sold_id, ip_address=client_ip(request))
    return jsonify({"success": True}), 200
