# pos_console/routers/users.py

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pos_console.core.auth import get_admin_user
from pos_console.core.hashing import hash_password
from pos_console.schemas.user import UserCreate, UserResponse, UserUpdate
from pos_console.services.carts import cart_registry
from pos_console.services.data_service import DataService, DataServiceConflictError, get_data_service

router = APIRouter(prefix="/users", tags=["Users"])


# STAFF MANAGEMENT

@router.get("", response_model=list[UserResponse])
def list_users(
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    data: DataService = Depends(get_data_service),
    admin: dict = Depends(get_admin_user),
):
    filters = [("store_id", "eq", admin["store_id"])]

    if search:
        filters.append(("full_name", "ilike", f"%{search}%"))

    return data.query(
        "users_profile",
        filters,
        order=["full_name"],
        limit=limit,
        offset=(page - 1) * limit,
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    data: DataService = Depends(get_data_service),
    admin: dict = Depends(get_admin_user),
):
    if data.count("users_profile", [("email", "eq", user_data.email)]):
        raise HTTPException(status_code=409, detail="Email already exists")

    try:
        return data.insert(
            "users_profile",
            {
                "email": user_data.email,
                "password_hash": hash_password(user_data.password),
                "full_name": user_data.full_name,
                "phone": user_data.phone,
                "role": user_data.role,
                "store_id": admin["store_id"],
            },
        )
    except DataServiceConflictError:
        raise HTTPException(status_code=409, detail="Email already exists")


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    data: DataService = Depends(get_data_service),
    admin: dict = Depends(get_admin_user),
):
    patch = user_data.model_dump(exclude_unset=True)

    for name in ("role", "is_active"):
        if name in patch and patch[name] is None:
            raise HTTPException(status_code=400, detail=f"{name} cannot be empty")

    # An admin cannot lock themselves out of staff management
    if user_id == admin["id"] and (
        patch.get("is_active") is False or patch.get("role") == "employee"
    ):
        raise HTTPException(
            status_code=400,
            detail="You cannot deactivate or demote your own account",
        )

    store_scope = [("store_id", "eq", admin["store_id"])]

    if patch and not data.update("users_profile", user_id, patch, store_scope):
        raise HTTPException(status_code=404, detail="User not found")

    user = data.get("users_profile", user_id, store_scope)

    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if not user["is_active"]:
        cart_registry.discard(user_id)

    return user
