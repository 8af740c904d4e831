from decimal import Decimal
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    credit_limit: Decimal = Field(Decimal("0.00"), ge=0, lt=100_000_000)


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    credit_limit: Decimal | None = Field(None, ge=0, lt=100_000_000)


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str | None
    phone: str | None
    address: str | None
    credit_limit: Decimal
    current_credit: Decimal
    created_at: datetime
