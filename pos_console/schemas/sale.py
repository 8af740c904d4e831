# schemas/sale.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal
from decimal import Decimal

from pos_console.schemas.credit import CreditTransactionResponse


class CartItemAdd(BaseModel):
    product_id: int


class CartItemUpdate(BaseModel):
    quantity: int


class CartLineResponse(BaseModel):
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    stock_quantity: int
    total: Decimal


class CartResponse(BaseModel):
    lines: List[CartLineResponse]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal


class CheckoutRequest(BaseModel):
    payment_method: Literal["cash", "card", "credit"] = "cash"
    customer_id: int | None = None


class CustomerRef(BaseModel):
    name: str


class OperatorRef(BaseModel):
    full_name: str | None


class SaleItemResponse(BaseModel):
    id: int
    product_id: int | None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class SaleResponse(BaseModel):
    id: int
    customer_id: int | None
    user_id: int | None
    total_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    payment_method: str
    status: str
    created_at: datetime
    customer: CustomerRef | None = None
    user: OperatorRef | None = None


class SaleDetailResponse(SaleResponse):
    items: List[SaleItemResponse] = Field(default_factory=list)


class CheckoutResponse(BaseModel):
    sale: SaleResponse
    items: List[SaleItemResponse]
    subtotal: Decimal
    credit_transaction: CreditTransactionResponse | None = None
