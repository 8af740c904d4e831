from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pos_console.services.dashboard import build_dashboard, local_day_bounds


NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_sale(data, store):
    def _make_sale(total, created_at, status="completed", store_id=None, **fields):
        row = {
            "store_id": store["id"] if store_id is None else store_id,
            "total_amount": Decimal(total),
            "payment_method": "cash",
            "status": status,
            "created_at": created_at,
        }
        row.update(fields)
        return data.insert("sales", row)

    return _make_sale


def test_local_day_bounds_in_utc():
    start, end = local_day_bounds(NOW, "UTC")

    assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert end == datetime(2026, 10, 19, 23, 59, 59, 999999, tzinfo=timezone.utc)


def test_local_day_bounds_follow_store_timezone():
    # 03:00 UTC is still the previous evening in Mexico City (UTC-6)
    start, end = local_day_bounds(datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc), "America/Mexico_City")

    assert start == datetime(2026, 10, 18, 6, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 10, 19, 5, 59, 59, 999999, tzinfo=timezone.utc)
    assert start.tzinfo == timezone.utc


def test_empty_store(data, store):
    dashboard = build_dashboard(data, store["id"], now=NOW)

    assert dashboard["today_sales"] == Decimal("0")
    assert dashboard["today_orders"] == 0
    assert dashboard["total_customers"] == 0
    assert dashboard["low_stock_products"] == 0
    assert dashboard["total_revenue"] == Decimal("0")
    assert dashboard["recent_sales"] == []


def test_today_counts_only_completed_sales_of_the_day(data, store, make_sale):
    make_sale("34.80", NOW - timedelta(hours=6))
    make_sale("11.60", NOW - timedelta(hours=1))
    make_sale("99.00", NOW - timedelta(hours=2), status="cancelled")
    make_sale("50.00", datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc))

    dashboard = build_dashboard(data, store["id"], now=NOW)

    assert dashboard["today_orders"] == 2
    assert dashboard["today_sales"] == Decimal("46.40")


def test_revenue_covers_trailing_window(data, store, make_sale):
    make_sale("34.80", NOW - timedelta(hours=1))
    make_sale("50.00", NOW - timedelta(days=10))
    make_sale("20.00", NOW - timedelta(days=29))
    make_sale("75.00", NOW - timedelta(days=31))
    make_sale("15.00", NOW - timedelta(days=3), status="cancelled")

    dashboard = build_dashboard(data, store["id"], now=NOW)

    assert dashboard["total_revenue"] == Decimal("104.80")


def test_low_stock_compares_against_each_products_minimum(data, store, make_product):
    make_product(name="Milk", stock_quantity=3, min_stock_level=10)
    make_product(name="Bread", stock_quantity=10, min_stock_level=10)
    make_product(name="Salt", stock_quantity=0, min_stock_level=0)
    make_product(name="Eggs", stock_quantity=1, min_stock_level=2)

    dashboard = build_dashboard(data, store["id"], now=NOW)

    assert dashboard["low_stock_products"] == 2


def test_recent_sales_newest_first_with_names(data, store, admin_user, make_customer, make_sale):
    rosa = make_customer()
    for hours in range(7, 0, -1):
        make_sale("1.00", NOW - timedelta(hours=hours))
    newest = make_sale("5.00", NOW, customer_id=rosa["id"], user_id=admin_user["id"])

    recent = build_dashboard(data, store["id"], now=NOW)["recent_sales"]

    assert len(recent) == 5
    assert recent[0]["id"] == newest["id"]
    assert recent[0]["customer"] == {"name": "Rosa Pérez"}
    assert recent[0]["user"] == {"full_name": "Ana Admin"}
    assert recent[1]["customer"] is None
    assert [row["id"] for row in recent] == sorted((row["id"] for row in recent), reverse=True)


def test_other_stores_are_not_counted(data, store, other_store, make_sale, make_customer):
    make_sale("10.00", NOW - timedelta(hours=1), store_id=other_store["id"])
    make_customer(store_id=other_store["id"])

    dashboard = build_dashboard(data, store["id"], now=NOW)

    assert dashboard["today_orders"] == 0
    assert dashboard["total_customers"] == 0
    assert dashboard["recent_sales"] == []
