# schemas/dashboard.py

from pydantic import BaseModel
from decimal import Decimal
from typing import List

from pos_console.schemas.sale import SaleResponse


class DashboardResponse(BaseModel):
    today_sales: Decimal
    today_orders: int
    total_customers: int
    low_stock_products: int
    total_revenue: Decimal
    recent_sales: List[SaleResponse]
