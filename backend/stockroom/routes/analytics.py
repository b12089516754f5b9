# Overview: Flask API routes for analytics; parses input and returns JSON responses.

"""
Analytics Routes

Dashboard aggregates, daily rollup snapshots, sales forecast and reorder
suggestions.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import reporting_service, forecast_service
from ..validation import ValidationError, NotFoundError
from ._params import int_arg


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


@analytics_bp.get("/dashboard")
def dashboard_route():
    """Query params: period (today | week | month | year, default today)."""
    try:
        result = reporting_service.dashboard(request.args.get("period", "today"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result)


@analytics_bp.get("/daily")
def daily_snapshots_route():
    """Stored daily rollups. Query params: start, end (YYYY-MM-DD, inclusive)."""
    try:
        rows = reporting_service.list_daily_analytics(
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [row.to_dict() for row in rows], "count": len(rows)})


@analytics_bp.post("/daily/<date>/rollup")
def daily_rollup_route(date: str):
    """Recompute and upsert the snapshot for one UTC date."""
    try:
        row = reporting_service.daily_rollup(date)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to roll up %s", date)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(row.to_dict()), 200


@analytics_bp.get("/forecast")
def forecast_route():
    """Query params: product_id (optional), days (default 7)."""
    try:
        result = forecast_service.forecast(
            product_id=int_arg("product_id"),
            days=int_arg("days", 7),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(result)


@analytics_bp.get("/reorder-suggestions")
def reorder_suggestions_route():
    suggestions = forecast_service.reorder_suggestions()
    return jsonify({"items": suggestions, "count": len(suggestions)})
