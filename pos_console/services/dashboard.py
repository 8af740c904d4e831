# =========================================================
# DASHBOARD AGGREGATION
#
# Read-only, recomputed from scratch on every request:
# - Today's completed sales (sum + count, local calendar day)
# - Customer count
# - Products below their minimum stock level
# - Completed revenue over the trailing window
# - Most recent sales with customer / operator names
# =========================================================

from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from pos_console.core.config import settings
from pos_console.services.data_service import ColumnRef, DataService


def local_day_bounds(now: datetime | None = None, tz_name: str | None = None):
    """Return the UTC start and end of the local calendar day containing ``now``."""
    tz = ZoneInfo(tz_name or settings.STORE_TIMEZONE)
    local_now = (now or datetime.now(timezone.utc)).astimezone(tz)

    start = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    end = start + timedelta(days=1) - timedelta(microseconds=1)

    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _sum_totals(rows: list[dict]) -> Decimal:
    return sum((Decimal(str(row["total_amount"])) for row in rows), Decimal("0.00"))


def build_dashboard(data: DataService, store_id: int | None, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    scope = [("store_id", "eq", store_id)]

    start_of_day, end_of_day = local_day_bounds(now)

    today_rows = data.query(
        "sales",
        [
            *scope,
            ("created_at", "gte", start_of_day),
            ("created_at", "lte", end_of_day),
            ("status", "eq", "completed"),
        ],
        columns=["total_amount"],
    )

    total_customers = data.count("customers", scope)

    low_stock_products = data.count(
        "products",
        [*scope, ("stock_quantity", "lt", ColumnRef("min_stock_level"))],
    )

    window_start = now - timedelta(days=settings.REVENUE_WINDOW_DAYS)
    revenue_rows = data.query(
        "sales",
        [
            *scope,
            ("created_at", "gte", window_start),
            ("status", "eq", "completed"),
        ],
        columns=["total_amount"],
    )

    recent_sales = data.query(
        "sales",
        scope,
        order=["-created_at"],
        limit=settings.RECENT_SALES_LIMIT,
        embed={"customer": ["name"], "user": ["full_name"]},
    )

    return {
        "today_sales": _sum_totals(today_rows),
        "today_orders": len(today_rows),
        "total_customers": total_customers,
        "low_stock_products": low_stock_products,
        "total_revenue": _sum_totals(revenue_rows),
        "recent_sales": recent_sales,
    }
