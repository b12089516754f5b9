from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class Transaction(db.Model):
    """
    One checkout. Groups the sale lines written by a single process_sale()
    call and keeps an embedded summary of them. Immutable once written.
    """
    __tablename__ = "transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # [{product_id, product_name, quantity, unit_price_cents, total_amount_cents}]
    items = db.Column(db.JSON, nullable=False, default=list)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    total_profit_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    customer_id = db.Column(db.String(64), nullable=True)

    occurred_at = db.Column(db.DateTime, nullable=False, index=True)

    lines = db.relationship("SaleLine", backref="transaction", lazy=True, order_by="SaleLine.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": self.items,
            "total_amount_cents": self.total_amount_cents,
            "total_profit_cents": self.total_profit_cents,
            "payment_method": self.payment_method,
            "customer_id": self.customer_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }


class SaleLine(db.Model):
    """One product on one checkout. Immutable once written."""
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_product_occurred", "product_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Copies at time of sale
    product_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False, index=True)
    unit_price_cents = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)
    profit_cents = db.Column(db.Integer, nullable=False)

    customer_id = db.Column(db.String(64), nullable=True)
    occurred_at = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "category": self.category,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_amount_cents": self.total_amount_cents,
            "profit_cents": self.profit_cents,
            "customer_id": self.customer_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }
