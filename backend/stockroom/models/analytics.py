from __future__ import annotations

from ..extensions import db


class DailyAnalytics(db.Model):
    """
    Pre-aggregated totals for one UTC calendar date.

    Rows are upserted by reporting_service.daily_rollup(): recomputing a date
    replaces every aggregate column, so repeated rollups are idempotent.
    """
    __tablename__ = "daily_analytics"
    __table_args__ = (
        db.UniqueConstraint("date", name="uq_daily_analytics_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD

    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_profit_cents = db.Column(db.Integer, nullable=False, default=0)
    total_transactions = db.Column(db.Integer, nullable=False, default=0)

    # [{product_id, product_name, quantity_sold, revenue_cents}] (max 10)
    top_selling_products = db.Column(db.JSON, nullable=False, default=list)
    # [{category, sales_cents, profit_cents}]
    category_performance = db.Column(db.JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<DailyAnalytics date={self.date} total_sales_cents={self.total_sales_cents}>"

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "total_sales_cents": self.total_sales_cents,
            "total_profit_cents": self.total_profit_cents,
            "total_transactions": self.total_transactions,
            "top_selling_products": self.top_selling_products,
            "category_performance": self.category_performance,
        }
