# =========================================================
# SALES ROUTER (CHECKOUT SCREEN)
#
# - Product picker (active products only)
# - Operator cart: add / change quantity / remove / clear
# - Checkout: cash, card or credit (customer required)
# - Sales history with line items
#
# Checkout is a sequence of independent writes. A failure
# part-way leaves earlier writes in place and keeps the cart.
# =========================================================

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request

from pos_console.core.auth import get_current_user
from pos_console.core.rate_limiter import limiter
from pos_console.routers.customers import get_store_customer
from pos_console.routers.products import matches_product_search
from pos_console.schemas.product import ProductResponse
from pos_console.schemas.sale import (
    CartItemAdd,
    CartItemUpdate,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    SaleDetailResponse,
    SaleResponse,
)
from pos_console.services.carts import get_cart
from pos_console.services.data_service import DataService, get_data_service
from pos_console.services.ledger import (
    Cart,
    CartError,
    LedgerStepError,
    LedgerValidationError,
    commit_sale,
)

router = APIRouter(prefix="/sales", tags=["Sales"])

SALE_NAMES = {"customer": ["name"], "user": ["full_name"]}


def _cart_response(cart: Cart):
    return {
        "lines": [{**asdict(line), "total": line.total} for line in cart.lines],
        "subtotal": cart.subtotal,
        "tax_rate": cart.tax_rate,
        "tax_amount": cart.tax,
        "total": cart.total,
    }


def _get_sellable_product(data: DataService, product_id: int, store_id: int | None) -> dict:
    product = data.get(
        "products",
        product_id,
        [("store_id", "eq", store_id), ("is_active", "eq", True)],
    )

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    return product


# =========================================================
# PRODUCT PICKER
# =========================================================
@router.get("/products", response_model=list[ProductResponse])
def list_sellable_products(
    search: str | None = Query(None, max_length=100),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    products = data.query(
        "products",
        [
            ("store_id", "eq", current_user["store_id"]),
            ("is_active", "eq", True),
        ],
        order=["name"],
    )

    return [product for product in products if matches_product_search(product, search)]


# =========================================================
# CART
# =========================================================
@router.get("/cart", response_model=CartResponse)
def view_cart(cart: Cart = Depends(get_cart)):
    return _cart_response(cart)


@router.post("/cart/items", response_model=CartResponse)
def add_to_cart(
    item: CartItemAdd,
    cart: Cart = Depends(get_cart),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    product = _get_sellable_product(data, item.product_id, current_user["store_id"])

    try:
        cart.add(product)
    except CartError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return _cart_response(cart)


@router.put("/cart/items/{product_id}", response_model=CartResponse)
def update_cart_quantity(
    product_id: int,
    item: CartItemUpdate,
    cart: Cart = Depends(get_cart),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    if cart.get(product_id) is None:
        raise HTTPException(status_code=404, detail="Product is not in the cart")

    if item.quantity <= 0:
        cart.remove(product_id)
        return _cart_response(cart)

    product = _get_sellable_product(data, product_id, current_user["store_id"])

    try:
        cart.update_quantity(product, item.quantity)
    except CartError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return _cart_response(cart)


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
def remove_from_cart(product_id: int, cart: Cart = Depends(get_cart)):
    cart.remove(product_id)
    return _cart_response(cart)


@router.delete("/cart", response_model=CartResponse)
def clear_cart(cart: Cart = Depends(get_cart)):
    cart.clear()
    return _cart_response(cart)


# =========================================================
# CHECKOUT
# =========================================================
@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def checkout(
    request: Request,
    checkout_data: CheckoutRequest,
    cart: Cart = Depends(get_cart),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    customer = None
    if checkout_data.customer_id is not None:
        customer = get_store_customer(data, checkout_data.customer_id, current_user["store_id"])

    try:
        receipt = commit_sale(
            data,
            cart,
            checkout_data.payment_method,
            customer=customer,
            user_id=current_user["id"],
            store_id=current_user["store_id"],
        )

    except LedgerValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    except LedgerStepError:
        raise HTTPException(status_code=500, detail="Unable to complete sale")

    return {
        "sale": receipt.sale,
        "items": receipt.items,
        "subtotal": receipt.subtotal,
        "credit_transaction": receipt.credit_transaction,
    }


# =========================================================
# SALES HISTORY
# =========================================================
@router.get("", response_model=list[SaleResponse])
def list_sales(
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return data.query(
        "sales",
        [("store_id", "eq", current_user["store_id"])],
        order=["-created_at"],
        limit=limit,
        offset=offset,
        embed=SALE_NAMES,
    )


@router.get("/{sale_id}", response_model=SaleDetailResponse)
def get_sale(
    sale_id: int,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    sale = data.get(
        "sales",
        sale_id,
        [("store_id", "eq", current_user["store_id"])],
        embed=SALE_NAMES,
    )

    if not sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sale not found",
        )

    sale["items"] = data.query(
        "sale_items",
        [("sale_id", "eq", sale_id)],
        order=["id"],
    )

    return sale
