# Overview: Service-layer operations for reporting; dashboard aggregates and daily rollups.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from stockroom.extensions import db
from stockroom.models import DailyAnalytics, SaleLine, Transaction
from stockroom.services.inventory_service import get_unresolved_alerts
from stockroom.validation import ValidationError
from stockroom.time_utils import (
    DAY,
    local_period_start,
    parse_date_key,
    to_utc_z,
    utc_day_bounds,
    utcnow,
)
from .concurrency import lock_for_update, run_with_retry

PERIODS = ("today", "week", "month", "year")
TOP_PRODUCTS_LIMIT = 10
TREND_DAYS = 7


@dataclass
class ProductSales:
    product_id: int
    product_name: str
    quantity_sold: int = 0
    revenue_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity_sold": self.quantity_sold,
            "revenue_cents": self.revenue_cents,
        }


@dataclass
class CategorySales:
    category: str
    sales_cents: int = 0
    profit_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "sales_cents": self.sales_cents,
            "profit_cents": self.profit_cents,
        }


@dataclass
class SalesAggregate:
    """Accumulated totals over a set of sale lines, shared by dashboard and rollup."""
    total_sales_cents: int = 0
    total_profit_cents: int = 0
    by_product: dict[int, ProductSales] = field(default_factory=dict)
    by_category: dict[str, CategorySales] = field(default_factory=dict)

    def add(self, line: SaleLine) -> None:
        self.total_sales_cents += line.total_amount_cents
        self.total_profit_cents += line.profit_cents

        product = self.by_product.get(line.product_id)
        if product is None:
            product = self.by_product[line.product_id] = ProductSales(line.product_id, line.product_name)
        product.quantity_sold += line.quantity
        product.revenue_cents += line.total_amount_cents

        category = self.by_category.get(line.category)
        if category is None:
            category = self.by_category[line.category] = CategorySales(line.category)
        category.sales_cents += line.total_amount_cents
        category.profit_cents += line.profit_cents

    def top_products(self, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
        # sorted() is stable: ties keep first-sold order
        ranked = sorted(self.by_product.values(), key=lambda p: p.quantity_sold, reverse=True)
        return [p.to_dict() for p in ranked[:limit]]

    def category_performance(self) -> list[dict]:
        ranked = sorted(self.by_category.values(), key=lambda c: c.sales_cents, reverse=True)
        return [c.to_dict() for c in ranked]


def aggregate_sales(lines: Iterable[SaleLine]) -> SalesAggregate:
    agg = SalesAggregate()
    for line in lines:
        agg.add(line)
    return agg


def _sale_lines_between(start: datetime, end: datetime | None = None) -> list[SaleLine]:
    query = db.session.query(SaleLine).filter(SaleLine.occurred_at >= start)
    if end is not None:
        query = query.filter(SaleLine.occurred_at < end)
    return query.order_by(SaleLine.occurred_at.asc(), SaleLine.id.asc()).all()


def _count_transactions_between(start: datetime, end: datetime | None = None) -> int:
    query = db.session.query(func.count(Transaction.id)).filter(Transaction.occurred_at >= start)
    if end is not None:
        query = query.filter(Transaction.occurred_at < end)
    return int(query.scalar() or 0)


def _sales_trend(lines: list[SaleLine], now: datetime) -> list[dict]:
    """One entry per UTC day, oldest first, ending with today."""
    today = now.date()
    trend = []
    for offset in range(TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_start, day_end = utc_day_bounds(day)
        day_lines = [line for line in lines if day_start <= line.occurred_at < day_end]
        trend.append({
            "date": day.isoformat(),
            "sales_cents": sum(line.total_amount_cents for line in day_lines),
            "transactions": len(day_lines),
        })
    return trend


def dashboard(period: str = "today", *, now: datetime | None = None) -> dict:
    """
    On-demand dashboard aggregates for a period starting at a local-calendar
    boundary (see time_utils.local_period_start).
    """
    if period not in PERIODS:
        raise ValidationError(f"period must be one of: {', '.join(PERIODS)}")

    now = now or utcnow()
    start = local_period_start(period, now)

    lines = _sale_lines_between(start)
    agg = aggregate_sales(lines)

    return {
        "period": period,
        "start": to_utc_z(start),
        "total_sales_cents": agg.total_sales_cents,
        "total_profit_cents": agg.total_profit_cents,
        "total_transactions": _count_transactions_between(start),
        "top_selling_products": agg.top_products(),
        "category_performance": agg.category_performance(),
        "sales_trend": _sales_trend(lines, now),
        "low_stock_alerts": [alert.to_dict() for alert in get_unresolved_alerts()],
    }


def _parse_day(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_date_key(value)
    except ValueError:
        raise ValidationError(f"invalid date '{value}', expected YYYY-MM-DD")


def daily_rollup(day: str | date) -> DailyAnalytics:
    """
    Recompute one UTC day's aggregates and upsert them keyed by date.

    Overwrites an existing row for the date, inserts otherwise. A concurrent
    insert of the same date loses on the unique constraint and is retried as
    an update (last writer wins).
    """
    target = _parse_day(day)
    date_key = target.isoformat()
    start, end = utc_day_bounds(target)

    def _op():
        agg = aggregate_sales(_sale_lines_between(start, end))
        values = {
            "total_sales_cents": agg.total_sales_cents,
            "total_profit_cents": agg.total_profit_cents,
            "total_transactions": _count_transactions_between(start, end),
            "top_selling_products": agg.top_products(),
            "category_performance": agg.category_performance(),
        }

        row = lock_for_update(db.session.query(DailyAnalytics).filter_by(date=date_key)).first()
        if row is None:
            row = DailyAnalytics(date=date_key)
            db.session.add(row)
        for key, value in values.items():
            setattr(row, key, value)

        db.session.commit()
        return row

    row = run_with_retry(_op, retry_on=(IntegrityError, OperationalError, StaleDataError))
    current_app.logger.info(
        "Rolled up %s: sales_cents=%s transactions=%s",
        date_key, row.total_sales_cents, row.total_transactions,
    )
    return row


def backfill_rollups(days: int, *, now: datetime | None = None) -> list[DailyAnalytics]:
    """Re-run daily_rollup for the last `days` UTC dates, oldest first."""
    today = (now or utcnow()).date()
    return [daily_rollup(today - (days - 1 - i) * DAY) for i in range(days)]


def list_daily_analytics(start: str | None = None, end: str | None = None) -> list[DailyAnalytics]:
    query = db.session.query(DailyAnalytics)
    if start:
        query = query.filter(DailyAnalytics.date >= _parse_day(start).isoformat())
    if end:
        query = query.filter(DailyAnalytics.date <= _parse_day(end).isoformat())
    return query.order_by(DailyAnalytics.date.asc()).all()
