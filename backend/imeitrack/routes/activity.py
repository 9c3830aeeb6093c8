# Overview: Flask API routes for the activity log.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_menu_permission
from ..services import activity_service

activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity")


@activity_bp.get("")
@require_auth
@require_menu_permission("activity")
def list_activity_route():
    """
    Newest-first activity in the caller's scope.

    Query params: action, entity_type, start_date, end_date, page, page_size (default 50).
    """
    result = activity_service.list_activity(
        g.principal,
        action=request.args.get("action") or None,
        entity_type=request.args.get("entity_type") or None,
        start_date=request.args.get("start_date") or None,
        end_date=request.args.get("end_date") or None,
        page=request.args.get("page"),
        page_size=request.args.get("page_size"),
    )
    return jsonify(result), 200
