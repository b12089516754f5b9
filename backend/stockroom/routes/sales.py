# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/stockroom/routes/sales.py
"""Sales API routes: checkout and sale/transaction history."""

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_service
from ..services.sales_service import SaleError, InsufficientStockError
from ..validation import ValidationError, NotFoundError, validate_sale_payload
from ._params import datetime_arg, int_arg


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

MAX_LIMIT = 1000


@sales_bp.post("")
def process_sale_route():
    """
    Process a checkout.

    Body: {"items": [{"product_id", "quantity"}], "payment_method", "customer_id"?}
    The sale is all-or-nothing: any failing line leaves stock untouched.
    """
    try:
        data = validate_sale_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = sales_service.process_sale(
            data["items"],
            data["payment_method"],
            data["customer_id"],
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 201


@sales_bp.get("/history")
def sales_history_route():
    """Sale lines, newest first. Query params: limit, start, end (ISO-8601, inclusive)."""
    try:
        lines = sales_service.get_sales_history(
            limit=int_arg("limit", sales_service.DEFAULT_HISTORY_LIMIT, minimum=1, maximum=MAX_LIMIT),
            start=datetime_arg("start"),
            end=datetime_arg("end"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"items": [line.to_dict() for line in lines], "count": len(lines)})


@sales_bp.get("/transactions")
def transactions_route():
    """Checkouts, newest first. Query params: limit, start, end (ISO-8601, inclusive)."""
    try:
        transactions = sales_service.get_transactions(
            limit=int_arg("limit", sales_service.DEFAULT_TRANSACTIONS_LIMIT, minimum=1, maximum=MAX_LIMIT),
            start=datetime_arg("start"),
            end=datetime_arg("end"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"items": [t.to_dict() for t in transactions], "count": len(transactions)})


@sales_bp.get("/by-product/<int:product_id>")
def sales_by_product_route(product_id: int):
    """Every sale line of one product, oldest first. Query params: start, end."""
    try:
        lines = sales_service.get_sales_by_product(
            product_id,
            start=datetime_arg("start"),
            end=datetime_arg("end"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"items": [line.to_dict() for line in lines], "count": len(lines)})
