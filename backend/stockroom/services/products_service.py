# backend/stockroom/services/products_service.py
"""
Products Service

Admin CRUD and catalogue queries. Quantity and min_stock_level edits are
written here but always followed by the stock ledger's alert reconciliation,
so the one-open-alert invariant holds no matter which path changed stock.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product
from ..validation import DuplicateSkuError, NotFoundError
from .concurrency import lock_for_update, run_with_retry
from .inventory_service import reconcile_stock_alerts

PRODUCT_MUTABLE_FIELDS = {
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
}

# Fields whose change must re-run stock alert reconciliation
STOCK_FIELDS = {"quantity", "min_stock_level"}

SEARCH_LIMIT = 20


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _sku_taken(sku: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def list_products(category: str | None = None, active_only: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if category is not None:
        query = query.filter(Product.category == category)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def search_products(term: str, category: str | None = None) -> list[Product]:
    """
    Active products whose name contains every word of the term
    (case-insensitive), capped at SEARCH_LIMIT.
    """
    query = db.session.query(Product).filter(Product.is_active.is_(True))
    for token in (term or "").split():
        query = query.filter(Product.name.ilike(f"%{token}%"))
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.name.asc(), Product.id.asc()).limit(SEARCH_LIMIT).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product not found: {product_id}")
    return product


def list_categories() -> list[str]:
    rows = db.session.query(Product.category).distinct().all()
    return sorted(row.category for row in rows)


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        DuplicateSkuError: If the SKU already exists
    """
    def _op():
        if _sku_taken(patch["sku"]):
            raise DuplicateSkuError("Product with this SKU already exists")

        p = Product(is_active=True)
        apply_product_patch(p, patch)
        if p.quantity is None:
            p.quantity = 0
        if p.min_stock_level is None:
            p.min_stock_level = 0

        db.session.add(p)
        db.session.flush()  # ensure p.id exists before alert reconciliation

        reconcile_stock_alerts(p)
        db.session.commit()
        current_app.logger.info("Created product %s sku=%s", p.id, p.sku)
        return p

    return run_with_retry(_op)


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Update a product.

    Raises:
        NotFoundError: If the product does not exist
        DuplicateSkuError: If the new SKU belongs to another product
    """
    def _op():
        p = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
        if p is None:
            raise NotFoundError(f"Product not found: {product_id}")

        if "sku" in patch and patch["sku"] != p.sku:
            if _sku_taken(patch["sku"], exclude_id=p.id):
                raise DuplicateSkuError("Another product with this SKU already exists")

        apply_product_patch(p, patch)
        db.session.flush()

        if STOCK_FIELDS & patch.keys():
            reconcile_stock_alerts(p)

        db.session.commit()
        current_app.logger.info(
            "Updated product %s fields: %s", p.id, ", ".join(sorted(patch.keys()))
        )
        return p

    return run_with_retry(_op)


def delete_product(*, product_id: int) -> Product:
    """
    Soft-delete a product (is_active=False). Sale lines and alerts keep
    referencing it.
    """
    def _op():
        p = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
        if p is None:
            raise NotFoundError(f"Product not found: {product_id}")

        if p.is_active:
            p.is_active = False
            db.session.commit()
            current_app.logger.info("Deactivated product %s sku=%s", p.id, p.sku)
        return p

    return run_with_retry(_op)
