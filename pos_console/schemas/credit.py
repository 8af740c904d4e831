# schemas/credit.py

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal


class CreditPaymentRequest(BaseModel):
    customer_id: int
    # Parsed by the ledger so bad input is a 400 with a readable message
    amount: Decimal | str | None = None


class TransactionCustomerRef(BaseModel):
    name: str


class CreditTransactionResponse(BaseModel):
    id: int
    customer_id: int
    sale_id: int | None
    transaction_type: str
    amount: Decimal
    balance_after: Decimal
    description: str | None
    created_at: datetime
    customer: TransactionCustomerRef | None = None


class CreditOverviewResponse(BaseModel):
    total_outstanding: Decimal
    customers_with_credit: int
    average_per_customer: Decimal


class CreditPaymentResponse(BaseModel):
    customer_id: int
    current_credit: Decimal
    transaction: CreditTransactionResponse
