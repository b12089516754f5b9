# Overview: Pytest coverage for sales forecast and reorder suggestions.

from datetime import datetime, timedelta

import pytest

from stockroom.services import forecast_service, products_service, sales_service
from stockroom.validation import NotFoundError, ValidationError
from conftest import FIXED_NOW


def _sell(product, quantity, when):
    sales_service.process_sale([{"product_id": product.id, "quantity": quantity}], "cash", now=when)


class TestForecast:
    def test_no_history_predicts_zero(self, db_session):
        result = forecast_service.forecast(days=5, now=FIXED_NOW)

        assert result["historical_average"] == 0.0
        assert result["data_points"] == 0
        assert len(result["forecast"]) == 5
        assert all(point["predicted_sales"] == 0 for point in result["forecast"])

    def test_weekday_factors(self, db_session, make_product):
        p = make_product(quantity=100, min_stock_level=0)
        _sell(p, 10, datetime(2026, 1, 2, 9))
        _sell(p, 4, datetime(2026, 1, 3, 9))
        _sell(p, 6, datetime(2026, 1, 3, 15))

        result = forecast_service.forecast(p.id, days=7, now=FIXED_NOW)

        assert result["historical_average"] == 10.0
        assert result["data_points"] == 2
        assert [(pt["date"], pt["predicted_sales"]) for pt in result["forecast"]] == [
            ("2026-01-06", 10),  # Tuesday
            ("2026-01-07", 10),
            ("2026-01-08", 10),
            ("2026-01-09", 12),  # Friday
            ("2026-01-10", 8),   # Saturday
            ("2026-01-11", 8),   # Sunday
            ("2026-01-12", 10),
        ]
        assert {pt["confidence"] for pt in result["forecast"]} == {0.75}

    def test_rounds_half_up(self, db_session, make_product):
        p = make_product(quantity=100, min_stock_level=0)
        _sell(p, 2, datetime(2026, 1, 2, 9))
        _sell(p, 3, datetime(2026, 1, 3, 9))

        result = forecast_service.forecast(p.id, days=1, now=FIXED_NOW)

        assert result["historical_average"] == 2.5
        assert result["forecast"][0]["predicted_sales"] == 3

    def test_scoped_to_product(self, db_session, make_product):
        p = make_product(quantity=100, min_stock_level=0)
        q = make_product(quantity=100, min_stock_level=0)
        _sell(p, 4, datetime(2026, 1, 2, 9))
        _sell(q, 20, datetime(2026, 1, 2, 10))

        assert forecast_service.forecast(p.id, now=FIXED_NOW)["historical_average"] == 4.0
        assert forecast_service.forecast(now=FIXED_NOW)["historical_average"] == 24.0

    def test_ignores_sales_older_than_window(self, db_session, make_product):
        p = make_product(quantity=100, min_stock_level=0)
        _sell(p, 50, FIXED_NOW - timedelta(days=31))
        _sell(p, 5, FIXED_NOW - timedelta(days=1))

        result = forecast_service.forecast(p.id, now=FIXED_NOW)
        assert result["historical_average"] == 5.0
        assert result["data_points"] == 1

    @pytest.mark.parametrize("days", [0, -1, 91])
    def test_days_out_of_range(self, db_session, days):
        with pytest.raises(ValidationError):
            forecast_service.forecast(days=days, now=FIXED_NOW)

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            forecast_service.forecast(99999, now=FIXED_NOW)


class TestReorderSuggestions:
    def test_quantities_and_ordering(self, db_session, make_product):
        critical = make_product(name="Critical", quantity=45, min_stock_level=5)
        fast = make_product(name="Fast mover", quantity=64, min_stock_level=10)
        slow = make_product(name="Slow mover", quantity=2, min_stock_level=5)
        make_product(name="Healthy", quantity=100, min_stock_level=5)

        yesterday = FIXED_NOW - timedelta(days=1)
        _sell(critical, 45, yesterday)
        _sell(fast, 60, yesterday)
        _sell(slow, 1, yesterday)

        suggestions = forecast_service.reorder_suggestions(now=FIXED_NOW)

        assert [s["product_id"] for s in suggestions] == [critical.id, fast.id, slow.id]

        by_id = {s["product_id"]: s for s in suggestions}
        # 45 units / 30 days = 1.5/day -> ceil(1.5 * 30 * 1.2)
        assert by_id[critical.id]["avg_daily_sales"] == 1.5
        assert by_id[critical.id]["suggested_reorder_quantity"] == 54
        assert by_id[critical.id]["urgency"] == "critical"
        assert by_id[critical.id]["current_stock"] == 0

        assert by_id[fast.id]["avg_daily_sales"] == 2.0
        assert by_id[fast.id]["suggested_reorder_quantity"] == 72
        assert by_id[fast.id]["urgency"] == "high"

        # 1/30 = 0.0333.. -> ceil(1.2)
        assert by_id[slow.id]["avg_daily_sales"] == 0.03
        assert by_id[slow.id]["suggested_reorder_quantity"] == 2

    def test_excludes_inactive_products(self, db_session, make_product):
        p = make_product(quantity=0, min_stock_level=5)
        products_service.delete_product(product_id=p.id)

        assert forecast_service.reorder_suggestions(now=FIXED_NOW) == []

    def test_no_sales_suggests_nothing_to_order(self, db_session, make_product):
        p = make_product(quantity=3, min_stock_level=5, supplier="Dairy Co")

        suggestion = forecast_service.reorder_suggestions(now=FIXED_NOW)[0]
        assert suggestion["product_id"] == p.id
        assert suggestion["supplier"] == "Dairy Co"
        assert suggestion["avg_daily_sales"] == 0.0
        assert suggestion["suggested_reorder_quantity"] == 0
