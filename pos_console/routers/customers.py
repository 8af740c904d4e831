# pos_console/routers/customers.py

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pos_console.core.auth import get_current_user
from pos_console.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
)
from pos_console.services.data_service import DataService, get_data_service

router = APIRouter(
    prefix="/customers",
    tags=["Customers"],
)


def matches_customer_search(customer: dict, search: str | None) -> bool:
    if not search:
        return True

    return (
        search.lower() in customer["name"].lower()
        or search in (customer.get("phone") or "")
        or search in (customer.get("email") or "")
    )


def get_store_customer(data: DataService, customer_id: int, store_id: int | None) -> dict:
    customer = data.get("customers", customer_id, [("store_id", "eq", store_id)])

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )

    return customer


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_customer(
    customer_data: CustomerCreate,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    # New customers start with no outstanding credit
    return data.insert(
        "customers",
        {
            **customer_data.model_dump(),
            "current_credit": 0,
            "store_id": current_user["store_id"],
        },
    )


@router.get("", response_model=list[CustomerResponse])
def list_customers(
    search: str | None = Query(None, max_length=100),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    customers = data.query(
        "customers",
        [("store_id", "eq", current_user["store_id"])],
        order=["name"],
    )

    return [customer for customer in customers if matches_customer_search(customer, search)]


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    return get_store_customer(data, customer_id, current_user["store_id"])


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    patch = customer_data.model_dump(exclude_unset=True)

    for name in ("name", "credit_limit"):
        if name in patch and patch[name] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{name} cannot be empty",
            )

    store_scope = [("store_id", "eq", current_user["store_id"])]

    if patch and not data.update("customers", customer_id, patch, store_scope):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )

    return get_store_customer(data, customer_id, current_user["store_id"])
