from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data plus on-hand quantity.

    QUANTITY OWNERSHIP:
    Product.quantity changes through the stock ledger (inventory_service
    adjust_stock() / apply_stock_delta(), also used by checkout) or through an
    admin create/update in products_service, which writes the field directly
    and then runs reconcile_stock_alerts(). It can never go below zero.

    SKU:
    Unique across all products, enforced by the database and checked by the
    products service before insert/rename so callers get a DuplicateSkuError
    instead of an IntegrityError.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_category_active", "category", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)

    category = db.Column(db.String(120), nullable=False, index=True)
    supplier = db.Column(db.String(255), nullable=False)
    expiry_date = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "cost_price_cents": self.cost_price_cents,
            "quantity": self.quantity,
            "min_stock_level": self.min_stock_level,
            "category": self.category,
            "supplier": self.supplier,
            "expiry_date": self.expiry_date,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockAlert(db.Model):
    """
    Low / out-of-stock alert. Append-mostly audit trail: rows are resolved,
    never deleted. At most one unresolved row exists per product.
    """
    __tablename__ = "stock_alerts"
    __table_args__ = (
        db.Index("ix_stock_alerts_product_resolved", "product_id", "is_resolved"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Snapshot at the time the alert was raised
    product_name = db.Column(db.String(255), nullable=False)
    current_stock = db.Column(db.Integer, nullable=False)
    min_stock_level = db.Column(db.Integer, nullable=False)

    alert_type = db.Column(db.String(32), nullable=False)  # low_stock, out_of_stock
    is_resolved = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False)
    resolved_at = db.Column(db.DateTime, nullable=True)

    product = db.relationship("Product", backref=db.backref("stock_alerts", lazy=True))

    def __repr__(self) -> str:
        return f"<StockAlert id={self.id} product_id={self.product_id} type={self.alert_type} resolved={self.is_resolved}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "current_stock": self.current_stock,
            "min_stock_level": self.min_stock_level,
            "alert_type": self.alert_type,
            "is_resolved": self.is_resolved,
            "created_at": to_utc_z(self.created_at),
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
        }
