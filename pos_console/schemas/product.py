from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    barcode: str | None = None
    sku: str | None = None

    cost_price: Decimal = Field(
        Decimal("0.00"),
        ge=0,
        lt=100_000_000,
        description="Cost price must be below 100 million"
    )

    selling_price: Decimal = Field(
        ...,
        ge=0,
        lt=100_000_000,
        description="Selling price must be below 100 million"
    )

    stock_quantity: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    barcode: str | None = None
    sku: str | None = None
    cost_price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    selling_price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    stock_quantity: int | None = Field(None, ge=0)
    min_stock_level: int | None = Field(None, ge=0)
    is_active: bool | None = None


class ProductResponse(BaseModel):
    id: int
    name: str
    description: str | None
    barcode: str | None
    sku: str | None
    cost_price: Decimal
    selling_price: Decimal
    stock_quantity: int
    min_stock_level: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
