# backend/stockroom/routes/inventory.py
"""
Stock ledger routes: direct stock adjustment (updateStock) and stock alerts.

Direct adjustments follow the ledger's clamping policy: a negative delta
larger than the on-hand quantity leaves the product at zero.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import inventory_service
from ..validation import ValidationError, NotFoundError, validate_stock_adjustment
from ._params import bool_arg


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/<int:product_id>/adjust")
def adjust_stock_route(product_id: int):
    """Body: {"delta": int} - negative consumes, positive replenishes."""
    payload = request.get_json(silent=True) or {}

    try:
        delta = validate_stock_adjustment(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        new_quantity = inventory_service.adjust_stock(product_id, delta)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return {"error": "Internal server error"}, 500

    return {"product_id": product_id, "quantity": new_quantity}, 200


@inventory_bp.get("/alerts")
def list_alerts_route():
    """Query params: resolved (optional true/false)."""
    try:
        resolved = bool_arg("resolved")
    except ValidationError as e:
        return {"error": str(e)}, 400

    alerts = inventory_service.list_stock_alerts(resolved=resolved)
    return jsonify({"items": [a.to_dict() for a in alerts], "count": len(alerts)})


@inventory_bp.post("/alerts/<int:alert_id>/resolve")
def resolve_alert_route(alert_id: int):
    try:
        alert = inventory_service.resolve_stock_alert(alert_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return alert.to_dict(), 200
