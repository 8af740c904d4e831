# =========================================================
# CREDITS ROUTER (STORE-CREDIT LEDGER)
#
# - Customers with an outstanding balance, largest first
# - Overview: total owed, debtor count, average per debtor
# - Recent transactions across customers / per customer
# - Recording a payment against a customer's balance
# =========================================================

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query

from pos_console.core.auth import get_current_user
from pos_console.core.config import settings
from pos_console.routers.customers import get_store_customer, matches_customer_search
from pos_console.schemas.credit import (
    CreditOverviewResponse,
    CreditPaymentRequest,
    CreditPaymentResponse,
    CreditTransactionResponse,
)
from pos_console.schemas.customer import CustomerResponse
from pos_console.services.data_service import DataService, get_data_service
from pos_console.services.ledger import (
    LedgerStepError,
    LedgerValidationError,
    record_credit_payment,
    round2,
)

router = APIRouter(prefix="/credits", tags=["Credits"])

TRANSACTION_NAMES = {"customer": ["name"]}


def _customers_with_credit(data: DataService, store_id: int | None) -> list[dict]:
    return data.query(
        "customers",
        [
            ("store_id", "eq", store_id),
            ("current_credit", "gt", 0),
        ],
        order=["-current_credit"],
    )


@router.get("/customers", response_model=list[CustomerResponse])
def list_customers_with_credit(
    search: str | None = Query(None, max_length=100),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    customers = _customers_with_credit(data, current_user["store_id"])
    return [customer for customer in customers if matches_customer_search(customer, search)]


@router.get("/overview", response_model=CreditOverviewResponse)
def credit_overview(
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    customers = _customers_with_credit(data, current_user["store_id"])

    total = sum((Decimal(str(c["current_credit"])) for c in customers), Decimal("0.00"))
    average = round2(total / len(customers)) if customers else Decimal("0.00")

    return {
        "total_outstanding": total,
        "customers_with_credit": len(customers),
        "average_per_customer": average,
    }


@router.get("/transactions", response_model=list[CreditTransactionResponse])
def recent_transactions(
    limit: int = Query(settings.RECENT_CREDIT_TRANSACTIONS_LIMIT, ge=1, le=200),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    return data.query(
        "credit_transactions",
        [("store_id", "eq", current_user["store_id"])],
        order=["-created_at"],
        limit=limit,
        embed=TRANSACTION_NAMES,
    )


@router.get(
    "/customers/{customer_id}/transactions",
    response_model=list[CreditTransactionResponse],
)
def customer_transactions(
    customer_id: int,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    get_store_customer(data, customer_id, current_user["store_id"])

    return data.query(
        "credit_transactions",
        [("customer_id", "eq", customer_id)],
        order=["-created_at"],
        embed=TRANSACTION_NAMES,
    )


@router.post("/payments", response_model=CreditPaymentResponse, status_code=201)
def record_payment(
    payment: CreditPaymentRequest,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    customer = get_store_customer(data, payment.customer_id, current_user["store_id"])

    try:
        transaction = record_credit_payment(
            data,
            customer,
            payment.amount,
            store_id=current_user["store_id"],
        )

    except LedgerValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    except LedgerStepError:
        raise HTTPException(status_code=500, detail="Unable to record payment")

    return {
        "customer_id": customer["id"],
        "current_credit": transaction["balance_after"],
        "transaction": transaction,
    }
