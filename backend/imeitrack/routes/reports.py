# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_menu_permission
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("")
@require_auth
@require_menu_permission("reports")
def reports_route():
    """
    Sales trend, brand distribution, monthly sales, top brands,
    purchase-vs-sales comparison and overall statistics.

    Query params: start_date, end_date (YYYY-MM-DD, both optional).
    """
    report = reporting_service.reports(
        g.principal,
        start_date=request.args.get("start_date") or None,
        end_date=request.args.get("end_date") or None,
    )
    return jsonify(report), 200
