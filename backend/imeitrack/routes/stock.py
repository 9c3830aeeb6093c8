# Overview: Flask API routes for stock statistics.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..services import stock_service

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.get("")
@require_auth
def stock_statistics_route():
    return jsonify(stock_service.stock_statistics(g.principal)), 200
