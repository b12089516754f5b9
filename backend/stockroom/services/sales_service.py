"""
Sales Service - atomic multi-line checkout

WHY: A checkout touches several products. Every availability check, stock
adjustment, sale line and the transaction record are written inside ONE
database transaction, so a failure on any line leaves no trace of the
earlier ones and two concurrent checkouts cannot both pass the check for
the same units.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db, rollup_queue
from ..models import Product, SaleLine, Transaction
from ..validation import NotFoundError
from stockroom.time_utils import utcnow, utc_date_key
from .inventory_service import apply_stock_delta
from .concurrency import begin_immediate, lock_for_update, run_with_retry

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_TRANSACTIONS_LIMIT = 50


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(SaleError):
    """A sale line asks for more units than are on hand."""


def _sell_line(product_id: int, quantity: int, *, transaction: Transaction, customer_id: str | None,
               occurred_at: datetime) -> SaleLine:
    """Core per-line logic without retry or commit."""
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise NotFoundError(f"Product not found: {product_id}")

    # Strict check must run before the ledger's clamping adjustment
    if quantity > product.quantity:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}. "
            f"Available: {product.quantity}, Requested: {quantity}",
            details={
                "product_id": product.id,
                "available": product.quantity,
                "requested": quantity,
            },
        )

    line_total = product.price_cents * quantity
    line_profit = (product.price_cents - product.cost_price_cents) * quantity

    apply_stock_delta(product, -quantity)

    line = SaleLine(
        transaction_id=transaction.id,
        product_id=product.id,
        product_name=product.name,
        category=product.category,
        unit_price_cents=product.price_cents,
        quantity=quantity,
        total_amount_cents=line_total,
        profit_cents=line_profit,
        customer_id=customer_id,
        occurred_at=occurred_at,
    )
    db.session.add(line)
    return line


def process_sale(
    items: list[dict],
    payment_method: str,
    customer_id: str | None = None,
    *,
    now: datetime | None = None,
) -> dict:
    """
    Sell every line of a cart as one unit of work.

    items: [{"product_id": int, "quantity": int > 0}, ...] in caller order.

    Raises:
        NotFoundError: a line references a missing product
        InsufficientStockError: a line exceeds on-hand stock
    Either way nothing of the sale is persisted.
    """
    def _op():
        begin_immediate()
        occurred_at = now or utcnow()

        transaction = Transaction(
            items=[],
            total_amount_cents=0,
            total_profit_cents=0,
            payment_method=payment_method,
            customer_id=customer_id,
            occurred_at=occurred_at,
        )
        db.session.add(transaction)
        db.session.flush()  # transaction.id for the lines

        summaries = []
        total_amount = 0
        total_profit = 0
        for item in items:
            line = _sell_line(
                item["product_id"],
                item["quantity"],
                transaction=transaction,
                customer_id=customer_id,
                occurred_at=occurred_at,
            )
            summaries.append({
                "product_id": line.product_id,
                "product_name": line.product_name,
                "quantity": line.quantity,
                "unit_price_cents": line.unit_price_cents,
                "total_amount_cents": line.total_amount_cents,
            })
            total_amount += line.total_amount_cents
            total_profit += line.profit_cents

        transaction.items = summaries
        transaction.total_amount_cents = total_amount
        transaction.total_profit_cents = total_profit

        transaction_id = transaction.id
        db.session.commit()
        return {
            "transaction_id": transaction_id,
            "total_amount_cents": total_amount,
            "total_profit_cents": total_profit,
            "items": summaries,
            "occurred_at": occurred_at,
        }

    result = run_with_retry(_op)
    current_app.logger.info(
        "Sale committed: transaction=%s lines=%s total_cents=%s",
        result["transaction_id"], len(result["items"]), result["total_amount_cents"],
    )

    _schedule_rollup(utc_date_key(result.pop("occurred_at")))
    return result


def _schedule_rollup(date_key: str) -> None:
    # The sale is already committed; a rollup problem must not surface here.
    try:
        rollup_queue.enqueue(date_key)
    except Exception:
        current_app.logger.exception("Could not enqueue rollup for %s", date_key)


def _apply_range(query, column, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query


def get_sales_history(
    *, limit: int = DEFAULT_HISTORY_LIMIT, start: datetime | None = None, end: datetime | None = None
) -> list[SaleLine]:
    query = _apply_range(db.session.query(SaleLine), SaleLine.occurred_at, start, end)
    return query.order_by(SaleLine.occurred_at.desc(), SaleLine.id.desc()).limit(limit).all()


def get_transactions(
    *, limit: int = DEFAULT_TRANSACTIONS_LIMIT, start: datetime | None = None, end: datetime | None = None
) -> list[Transaction]:
    query = _apply_range(db.session.query(Transaction), Transaction.occurred_at, start, end)
    return query.order_by(Transaction.occurred_at.desc(), Transaction.id.desc()).limit(limit).all()


def get_sales_by_product(
    product_id: int, *, start: datetime | None = None, end: datetime | None = None
) -> list[SaleLine]:
    query = db.session.query(SaleLine).filter(SaleLine.product_id == product_id)
    query = _apply_range(query, SaleLine.occurred_at, start, end)
    return query.order_by(SaleLine.occurred_at.asc(), SaleLine.id.asc()).all()
