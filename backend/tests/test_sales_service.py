# Overview: Pytest coverage for atomic checkout and sale history queries.

"""
Sale Processor Tests

A checkout is all-or-nothing: every line's stock check, stock decrement and
sale record plus the transaction record commit together or not at all.
"""

from datetime import timedelta

import pytest

from stockroom.extensions import db, rollup_queue
from stockroom.models import DailyAnalytics, Product, SaleLine, StockAlert, Transaction
from stockroom.services import sales_service
from stockroom.services.sales_service import InsufficientStockError
from stockroom.validation import NotFoundError
from conftest import FIXED_NOW


def _quantity(product_id):
    return db.session.get(Product, product_id).quantity


class TestProcessSale:
    def test_single_line_totals(self, db_session, product):
        """One unit at $40.00 costing $27.00 -> $40.00 revenue, $13.00 profit."""
        result = sales_service.process_sale(
            [{"product_id": product.id, "quantity": 1}], "cash"
        )

        assert result["total_amount_cents"] == 4000
        assert result["total_profit_cents"] == 1300
        assert result["items"] == [{
            "product_id": product.id,
            "product_name": "Whole Milk",
            "quantity": 1,
            "unit_price_cents": 4000,
            "total_amount_cents": 4000,
        }]
        assert _quantity(product.id) == 9

    def test_multi_line_sale_writes_every_record(self, db_session, product, other_product):
        result = sales_service.process_sale(
            [
                {"product_id": product.id, "quantity": 2},
                {"product_id": other_product.id, "quantity": 3},
            ],
            "card",
            customer_id="cust-42",
        )

        assert result["total_amount_cents"] == 2 * 4000 + 3 * 500
        assert result["total_profit_cents"] == 2 * 1300 + 3 * 200

        txn = db.session.get(Transaction, result["transaction_id"])
        assert txn.payment_method == "card"
        assert txn.customer_id == "cust-42"
        assert [line.product_id for line in txn.lines] == [product.id, other_product.id]
        assert {line.occurred_at for line in txn.lines} == {txn.occurred_at}
        assert all(line.customer_id == "cust-42" for line in txn.lines)

        assert _quantity(product.id) == 8
        assert _quantity(other_product.id) == 47

    def test_two_line_cart_totals(self, db_session, make_product):
        """A ($10 cost $6) x2 plus B ($20 cost $15) x1 -> $40.00 revenue, $13.00 profit."""
        a = make_product(price_cents=1000, cost_price_cents=600)
        b = make_product(price_cents=2000, cost_price_cents=1500)

        result = sales_service.process_sale(
            [{"product_id": a.id, "quantity": 2}, {"product_id": b.id, "quantity": 1}], "cash"
        )

        assert result["total_amount_cents"] == 4000
        assert result["total_profit_cents"] == 1300

    def test_sale_line_copies_product_snapshot(self, db_session, product):
        sales_service.process_sale([{"product_id": product.id, "quantity": 1}], "cash")

        line = db.session.query(SaleLine).one()
        assert line.product_name == "Whole Milk"
        assert line.category == "Dairy"
        assert line.unit_price_cents == 4000
        assert line.profit_cents == 1300

    def test_selling_exact_stock_is_allowed(self, db_session, product):
        sales_service.process_sale([{"product_id": product.id, "quantity": 10}], "cash")
        assert _quantity(product.id) == 0

    def test_sale_raises_stock_alert(self, db_session, make_product):
        p = make_product(quantity=10, min_stock_level=5)
        sales_service.process_sale([{"product_id": p.id, "quantity": 7}], "cash")

        alert = db.session.query(StockAlert).filter_by(product_id=p.id, is_resolved=False).one()
        assert alert.current_stock == 3


class TestProcessSaleAtomicity:
    def _assert_nothing_written(self, *quantities):
        assert db.session.query(Transaction).count() == 0
        assert db.session.query(SaleLine).count() == 0
        for product_id, expected in quantities:
            assert _quantity(product_id) == expected

    def test_insufficient_stock_rejects_whole_sale(self, db_session, product, other_product):
        """A failing later line undoes the earlier lines."""
        with pytest.raises(InsufficientStockError) as exc:
            sales_service.process_sale(
                [
                    {"product_id": other_product.id, "quantity": 5},
                    {"product_id": product.id, "quantity": 11},
                ],
                "cash",
            )

        assert exc.value.details == {"product_id": product.id, "available": 10, "requested": 11}
        assert "Available: 10, Requested: 11" in str(exc.value)
        self._assert_nothing_written((product.id, 10), (other_product.id, 50))

    def test_failed_sale_raises_no_alerts(self, db_session, make_product):
        p = make_product(quantity=10, min_stock_level=5)
        q = make_product(quantity=1, min_stock_level=0)

        with pytest.raises(InsufficientStockError):
            sales_service.process_sale(
                [{"product_id": p.id, "quantity": 8}, {"product_id": q.id, "quantity": 2}],
                "cash",
            )

        assert db.session.query(StockAlert).filter_by(product_id=p.id).count() == 0
        self._assert_nothing_written((p.id, 10), (q.id, 1))

    def test_unknown_product_rejects_whole_sale(self, db_session, product):
        with pytest.raises(NotFoundError):
            sales_service.process_sale(
                [{"product_id": product.id, "quantity": 1}, {"product_id": 99999, "quantity": 1}],
                "cash",
            )
        self._assert_nothing_written((product.id, 10))

    def test_repeated_product_lines_share_stock(self, db_session, product):
        """The second line sees the stock left after the first."""
        with pytest.raises(InsufficientStockError) as exc:
            sales_service.process_sale(
                [{"product_id": product.id, "quantity": 6}, {"product_id": product.id, "quantity": 6}],
                "cash",
            )

        assert exc.value.details["available"] == 4
        self._assert_nothing_written((product.id, 10))


class TestRollupTrigger:
    def test_sale_rolls_up_its_day(self, db_session, product):
        sales_service.process_sale(
            [{"product_id": product.id, "quantity": 2}], "cash", now=FIXED_NOW
        )

        row = db.session.query(DailyAnalytics).filter_by(date="2026-01-05").one()
        assert row.total_sales_cents == 8000
        assert row.total_transactions == 1

    def test_failing_rollup_does_not_fail_sale(self, db_session, product, monkeypatch):
        def boom(date_key):
            raise RuntimeError("rollup exploded")

        monkeypatch.setattr(rollup_queue, "handler", boom)
        result = sales_service.process_sale([{"product_id": product.id, "quantity": 1}], "cash")

        assert result["total_amount_cents"] == 4000
        assert _quantity(product.id) == 9
        assert db.session.query(DailyAnalytics).count() == 0

    def test_enqueue_error_does_not_fail_sale(self, db_session, product, monkeypatch):
        def broken_enqueue(date_key):
            raise RuntimeError("queue unavailable")

        monkeypatch.setattr(rollup_queue, "enqueue", broken_enqueue)
        result = sales_service.process_sale([{"product_id": product.id, "quantity": 1}], "cash")

        assert db.session.get(Transaction, result["transaction_id"]) is not None


class TestSaleQueries:
    def _sell_on(self, product, when, quantity=1):
        return sales_service.process_sale(
            [{"product_id": product.id, "quantity": quantity}], "cash", now=when
        )

    def test_history_newest_first_with_limit(self, db_session, product):
        for days_ago in (3, 2, 1):
            self._sell_on(product, FIXED_NOW - timedelta(days=days_ago))

        lines = sales_service.get_sales_history(limit=2)
        assert [line.occurred_at for line in lines] == [
            FIXED_NOW - timedelta(days=1),
            FIXED_NOW - timedelta(days=2),
        ]

    def test_history_range_is_inclusive(self, db_session, product):
        for days_ago in (3, 2, 1):
            self._sell_on(product, FIXED_NOW - timedelta(days=days_ago))

        lines = sales_service.get_sales_history(
            start=FIXED_NOW - timedelta(days=3),
            end=FIXED_NOW - timedelta(days=2),
        )
        assert len(lines) == 2

    def test_transactions_newest_first(self, db_session, product):
        first = self._sell_on(product, FIXED_NOW - timedelta(hours=2))
        second = self._sell_on(product, FIXED_NOW - timedelta(hours=1))

        txns = sales_service.get_transactions()
        assert [t.id for t in txns] == [second["transaction_id"], first["transaction_id"]]

    def test_sales_by_product_oldest_first(self, db_session, product, other_product):
        self._sell_on(product, FIXED_NOW - timedelta(days=1), quantity=2)
        self._sell_on(other_product, FIXED_NOW - timedelta(days=1))
        self._sell_on(product, FIXED_NOW - timedelta(days=2), quantity=3)

        lines = sales_service.get_sales_by_product(product.id)
        assert [line.quantity for line in lines] == [3, 2]
