# Overview: Service-layer operations for the stock ledger; owns Product.quantity and StockAlert.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, StockAlert
from ..validation import NotFoundError
from stockroom.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
"""
Stock Ledger Invariants (authoritative)

Quantity:
- Product.quantity is an integer >= 0 at all times.
- adjust_stock() clamps at zero rather than rejecting. Callers that must not
  oversell (the sale processor) check availability before adjusting.

Alerts:
- At most one unresolved StockAlert per product.
- quantity <= min_stock_level and no open alert -> raise one
  (out_of_stock when quantity == 0, otherwise low_stock).
- quantity > min_stock_level -> resolve every open alert for the product.
- The same rule runs after every mutation of quantity or min_stock_level,
  always against the post-mutation threshold.
- Alerts are never deleted.
"""

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"


def _get_product(product_id: int, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError(f"Product not found: {product_id}")
    return product


def _open_alerts_query(product_id: int):
    return db.session.query(StockAlert).filter_by(product_id=product_id, is_resolved=False)


def reconcile_stock_alerts(product: Product) -> StockAlert | None:
    """
    Bring the product's alert state in line with its current quantity.

    Returns the newly raised alert, if any. Does not commit.
    """
    if product.quantity <= product.min_stock_level:
        if _open_alerts_query(product.id).first() is not None:
            return None

        alert = StockAlert(
            product_id=product.id,
            product_name=product.name,
            current_stock=product.quantity,
            min_stock_level=product.min_stock_level,
            alert_type=OUT_OF_STOCK if product.quantity == 0 else LOW_STOCK,
            is_resolved=False,
            created_at=utcnow(),
        )
        db.session.add(alert)
        db.session.flush()
        current_app.logger.info(
            "Raised %s alert for product %s (quantity=%s, min=%s)",
            alert.alert_type, product.id, product.quantity, product.min_stock_level,
        )
        return alert

    now = utcnow()
    for alert in _open_alerts_query(product.id).all():
        alert.is_resolved = True
        alert.resolved_at = now
        current_app.logger.info("Resolved alert %s for product %s", alert.id, product.id)
    db.session.flush()
    return None


def apply_stock_delta(product: Product, delta: int) -> int:
    """Core adjustment without locking, retry, or commit."""
    target = product.quantity + delta
    new_quantity = max(0, target)
    if target < 0:
        current_app.logger.warning(
            "Stock for product %s clamped at zero (quantity=%s, delta=%s)",
            product.id, product.quantity, delta,
        )
    product.quantity = new_quantity
    db.session.flush()
    reconcile_stock_alerts(product)
    return new_quantity


def adjust_stock(product_id: int, delta: int, *, commit: bool = True) -> int:
    """
    Apply a signed quantity change and return the new on-hand quantity.

    Negative delta consumes stock, positive replenishes. With commit=False
    the change is only flushed so it joins the caller's unit of work.
    """
    def _op():
        product = _get_product(product_id, lock=True)
        new_quantity = apply_stock_delta(product, delta)
        if commit:
            db.session.commit()
        return new_quantity

    if not commit:
        return _op()
    return run_with_retry(_op)


def list_stock_alerts(resolved: bool | None = None) -> list[StockAlert]:
    query = db.session.query(StockAlert)
    if resolved is not None:
        query = query.filter(StockAlert.is_resolved.is_(resolved))
    return query.order_by(StockAlert.created_at.desc(), StockAlert.id.desc()).all()


def get_unresolved_alerts() -> list[StockAlert]:
    return list_stock_alerts(resolved=False)


def resolve_stock_alert(alert_id: int) -> StockAlert:
    """Manually resolve an alert. Resolving an already-resolved alert is a no-op."""
    def _op():
        alert = lock_for_update(db.session.query(StockAlert).filter_by(id=alert_id)).first()
        if alert is None:
            raise NotFoundError(f"Stock alert not found: {alert_id}")

        if not alert.is_resolved:
            alert.is_resolved = True
            alert.resolved_at = utcnow()
            db.session.commit()
            current_app.logger.info("Alert %s resolved manually", alert_id)
        return alert

    return run_with_retry(_op)
