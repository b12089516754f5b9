# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product catalogue routes (getProducts, searchProducts, addProduct,
updateProduct, deleteProduct).

Shape and range checks happen here; SKU uniqueness and stock alert
reconciliation happen in the products service.
"""
from flask import Blueprint, request, current_app

from ..models import Product
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    NotFoundError,
    ConflictError,
)
from ._params import bool_arg

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku",
        "name",
        "description",
        "price_cents",
        "cost_price_cents",
        "quantity",
        "min_stock_level",
        "category",
        "supplier",
        "expiry_date",
        "is_active",
    },
    required_on_create={
        "sku",
        "name",
        "price_cents",
        "cost_price_cents",
        "quantity",
        "min_stock_level",
        "category",
        "supplier",
    },
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - category: str (optional) - exact category match
    - active_only: bool (optional) - hide soft-deleted products
    """
    try:
        active_only = bool_arg("active_only") or False
    except ValidationError as e:
        return {"error": str(e)}, 400

    products = products_service.list_products(
        category=request.args.get("category"),
        active_only=active_only,
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/search")
def search_products():
    """Search active products by name. Query params: q (required), category (optional)."""
    term = (request.args.get("q") or "").strip()
    if not term:
        return {"error": "q is required"}, 400

    products = products_service.search_products(term, category=request.args.get("category"))
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/categories")
def list_categories():
    return {"items": products_service.list_categories()}


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        return products_service.get_product(product_id).to_dict()
    except NotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.post("")
def create_product_route():
    """Create a new product. New products start active."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """Update a product. Quantity / min level edits re-run stock alert reconciliation."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Soft-delete a product."""
    try:
        products_service.delete_product(product_id=product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200
