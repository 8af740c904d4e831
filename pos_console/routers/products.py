# pos_console/routers/products.py

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pos_console.core.auth import get_current_user
from pos_console.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from pos_console.services.data_service import DataService, get_data_service

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)

REQUIRED_FIELDS = {
    "name",
    "cost_price",
    "selling_price",
    "stock_quantity",
    "min_stock_level",
    "is_active",
}


def matches_product_search(product: dict, search: str | None) -> bool:
    # Name is case-insensitive; barcode and SKU are matched as typed
    if not search:
        return True

    return (
        search.lower() in product["name"].lower()
        or search in (product.get("barcode") or "")
        or search in (product.get("sku") or "")
    )


def _get_store_product(data: DataService, product_id: int, store_id: int | None):
    product = data.get("products", product_id, [("store_id", "eq", store_id)])

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return product


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    return data.insert(
        "products",
        {**product_data.model_dump(), "store_id": current_user["store_id"]},
    )


@router.get("", response_model=list[ProductResponse])
def list_products(
    search: str | None = Query(None, max_length=100),
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    products = data.query(
        "products",
        [("store_id", "eq", current_user["store_id"])],
        order=["name"],
    )

    return [product for product in products if matches_product_search(product, search)]


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    return _get_store_product(data, product_id, current_user["store_id"])


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    store_scope = [("store_id", "eq", current_user["store_id"])]
    patch = product_data.model_dump(exclude_unset=True)

    cleared = sorted(name for name in REQUIRED_FIELDS if name in patch and patch[name] is None)
    if cleared:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Fields cannot be empty: {', '.join(cleared)}",
        )

    if patch and not data.update("products", product_id, patch, store_scope):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return _get_store_product(data, product_id, current_user["store_id"])


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    deleted = data.delete(
        "products",
        product_id,
        [("store_id", "eq", current_user["store_id"])],
    )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return None
