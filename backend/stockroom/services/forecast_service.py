# Overview: Read-only demand projections and reorder advice derived from sale history.

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction

from ..extensions import db
from ..models import Product, SaleLine
from ..validation import NotFoundError, ValidationError
from stockroom.time_utils import DAY, utcnow, utc_date_key
"""
Heuristics:

Forecast
- Baseline = mean of per-day unit totals over the last HISTORY_DAYS days,
  counting only days that had sales. 0 when there is no history.
- Each projected day = round_half_up(baseline * weekday factor).
  Saturday/Sunday 0.8, Friday 1.2, other weekdays 1.0.
- Confidence is a constant, not derived from variance.

Reorder
- Candidates: active products with quantity <= min_stock_level.
- avg_daily_sales = units sold in the last HISTORY_DAYS days / HISTORY_DAYS.
- suggested quantity = ceil(avg_daily_sales * COVER_DAYS * SAFETY_FACTOR),
  i.e. 30 days of cover plus 20% safety stock, computed exactly.
- Zero stock is critical, anything else high. Critical first, then by
  avg_daily_sales descending.
"""

HISTORY_DAYS = 30
COVER_DAYS = 30
SAFETY_FACTOR = Fraction("1.2")
FORECAST_CONFIDENCE = 0.75
MAX_FORECAST_DAYS = 90

FRIDAY, SATURDAY, SUNDAY = 4, 5, 6
WEEKDAY_FACTORS = {
    FRIDAY: Decimal("1.2"),
    SATURDAY: Decimal("0.8"),
    SUNDAY: Decimal("0.8"),
}

URGENCY_CRITICAL = "critical"
URGENCY_HIGH = "high"


def _round_half_up(value, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def _history(start: datetime, product_id: int | None = None) -> list[SaleLine]:
    query = db.session.query(SaleLine).filter(SaleLine.occurred_at >= start)
    if product_id is not None:
        query = query.filter(SaleLine.product_id == product_id)
    return query.all()


def forecast(product_id: int | None = None, days: int = 7, *, now: datetime | None = None) -> dict:
    if days < 1 or days > MAX_FORECAST_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_FORECAST_DAYS}")
    if product_id is not None and db.session.get(Product, product_id) is None:
        raise NotFoundError(f"Product not found: {product_id}")

    now = now or utcnow()
    daily_units: dict[str, int] = defaultdict(int)
    for line in _history(now - HISTORY_DAYS * DAY, product_id):
        daily_units[utc_date_key(line.occurred_at)] += line.quantity

    totals = list(daily_units.values())
    average = Fraction(sum(totals), len(totals)) if totals else Fraction(0)

    points = []
    for offset in range(1, days + 1):
        day = (now + offset * DAY).date()
        factor = WEEKDAY_FACTORS.get(day.weekday(), Decimal(1))
        predicted = _round_half_up(Decimal(average.numerator) / Decimal(average.denominator) * factor)
        points.append({
            "date": day.isoformat(),
            "predicted_sales": int(predicted),
            "confidence": FORECAST_CONFIDENCE,
        })

    return {
        "product_id": product_id,
        "forecast": points,
        "historical_average": float(average),
        "data_points": len(totals),
    }


def reorder_suggestions(*, now: datetime | None = None) -> list[dict]:
    now = now or utcnow()
    products = db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.quantity <= Product.min_stock_level,
    ).order_by(Product.id.asc()).all()
    if not products:
        return []

    units_by_product: dict[int, int] = defaultdict(int)
    for line in db.session.query(SaleLine).filter(
        SaleLine.product_id.in_([p.id for p in products]),
        SaleLine.occurred_at >= now - HISTORY_DAYS * DAY,
    ):
        units_by_product[line.product_id] += line.quantity

    suggestions = []
    for product in products:
        avg_daily = Fraction(units_by_product[product.id], HISTORY_DAYS)
        avg_display = _round_half_up(Decimal(avg_daily.numerator) / Decimal(avg_daily.denominator), 2)
        suggestions.append({
            "product_id": product.id,
            "product_name": product.name,
            "sku": product.sku,
            "supplier": product.supplier,
            "current_stock": product.quantity,
            "min_stock_level": product.min_stock_level,
            "avg_daily_sales": float(avg_display),
            "suggested_reorder_quantity": math.ceil(avg_daily * COVER_DAYS * SAFETY_FACTOR),
            "urgency": URGENCY_CRITICAL if product.quantity == 0 else URGENCY_HIGH,
        })

    suggestions.sort(key=lambda s: (s["urgency"] != URGENCY_CRITICAL, -s["avg_daily_sales"]))
    return suggestions
