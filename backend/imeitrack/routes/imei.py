# Overview: Flask API routes for IMEI records; parses input and returns JSON responses.

"""
IMEI record routes.

SCOPE: every route works on the caller's owner scope (superadmin: all,
admin: own company, staff: own records). Typed service errors are turned
into 400/403/404/409 by the app-level error handlers.
"""

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import export_service, imei_service
from ..services.activity_service import client_ip

imei_bp = Blueprint("imei", __name__, url_prefix="/api/imei")

FILTER_PARAMS = (
    "q",
    "brand",
    "color",
    "ram",
    "storage",
    "purchase_name",
    "status",
    "purchase_date_from",
    "purchase_date_to",
    "sold_date_from",
    "sold_date_to",
    "purchase_amount_min",
    "purchase_amount_max",
    "sold_amount_min",
    "sold_amount_max",
)


def _filters_from_args() -> dict:
    return {key: request.args.get(key) for key in FILTER_PARAMS if request.args.get(key) not in (None, "")}


@imei_bp.get("")
@require_auth
def list_imei_route():
    """
    List IMEI records with sold fields merged.

    Query params: page, page_size, plus the filters in FILTER_PARAMS.
    """
    result = imei_service.list_imei_records(
        g.principal,
        _filters_from_args(),
        page=request.args.get("page"),
        page_size=request.args.get("page_size"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
        max_size=current_app.config["MAX_PAGE_SIZE"],
    )
    return jsonify(result), 200


@imei_bp.post("")
@require_auth
def create_imei_route():
    payload = request.get_json(silent=True) or {}
    record = imei_service.create_imei_record(g.principal, payload, ip_address=client_ip(request))
    return jsonify({"record": record, "id": record["id"], "imei": record["imei"]}), 201


@imei_bp.get("/check")
@require_auth
def check_imei_route():
    """Does this IMEI already exist? (?imei=...)"""
    return jsonify(imei_service.check_imei(g.principal, request.args.get("imei"))), 200


@imei_bp.get("/list")
@require_auth
def recent_imeis_route():
    """Recent distinct IMEIs for pickers."""
    return jsonify({"imeis": imei_service.list_recent_imeis(g.principal)}), 200


@imei_bp.get("/export")
@require_auth
def export_imei_route():
    """CSV download of the caller's IMEI records (?q= narrows it)."""
    csv_text = export_service.export_imei_csv(g.principal, request.args.get("q"))
    filename = export_service.export_filename()
    return Response(
        csv_text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@imei_bp.get("/<int:record_id>")
@require_auth
def get_imei_route(record_id: int):
    return jsonify({"record": imei_service.get_imei_record(g.principal, record_id)}), 200


@imei_bp.put("/<int:record_id>")
@require_auth
def update_imei_route(record_id: int):
    payload = request.get_json(silent=True) or {}
    record = imei_service.update_imei_record(g.principal, record_id, payload, ip_address=client_ip(request))
    return jsonify({"record": record, "success": True}), 200


@imei_bp.delete("/<int:record_id>")
@require_auth
def delete_imei_route(record_id: int):
    imei_service.delete_imei_record(g.principal, record_id, ip_address=client_ip(request))
    return jsonify({"success": True}), 200
