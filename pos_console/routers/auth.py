import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm

from pos_console.core.auth import get_current_user, get_optional_user
from pos_console.core.hashing import hash_password, verify_password
from pos_console.core.jwt import create_session_token
from pos_console.core.rate_limiter import limiter
from pos_console.schemas.user import (
    SessionResponse,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from pos_console.services.carts import cart_registry
from pos_console.services.data_service import (
    DataService,
    DataServiceConflictError,
    DataServiceError,
    get_data_service,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = logging.getLogger("pos_console")

COMMON_PASSWORDS = {
    "password",
    "password123",
    "12345678",
    "qwerty123",
    "admin123",
}


# ---------------- SIGNUP ----------------
@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def signup(
    request: Request,
    signup_data: SignupRequest,
    data: DataService = Depends(get_data_service),
):
    if signup_data.password.lower() in COMMON_PASSWORDS:
        raise HTTPException(
            status_code=400,
            detail="Password is too common. Please choose a stronger password.",
        )

    if signup_data.password.isdigit():
        raise HTTPException(
            status_code=400,
            detail="Password cannot be numbers only.",
        )

    try:
        if data.count("users_profile", [("email", "eq", signup_data.email)]):
            raise HTTPException(status_code=409, detail="Email already exists")

        store = data.insert("stores", {"name": signup_data.store_name})

        try:
            data.insert(
                "users_profile",
                {
                    "email": signup_data.email,
                    "password_hash": hash_password(signup_data.password),
                    "full_name": signup_data.full_name,
                    "role": "admin",
                    "store_id": store["id"],
                },
            )
        except DataServiceError:
            # Do not leave an ownerless store behind
            data.delete("stores", store["id"])
            raise

    except DataServiceConflictError:
        # Another signup took the email between the check and the insert
        raise HTTPException(status_code=409, detail="Email already exists")

    except DataServiceError:
        raise HTTPException(status_code=500, detail="Unable to create account")

    logger.info(f"Store {store['id']} registered by {signup_data.email}")

    return {"message": "Account created successfully. Please login."}


# ---------------- LOGIN (TOKEN-BASED) ----------------
@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    data: DataService = Depends(get_data_service),
):
    users = data.query("users_profile", [("email", "eq", form_data.username)], limit=1)
    user = users[0] if users else None

    if not user or not verify_password(form_data.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user["is_active"]:
        raise HTTPException(status_code=401, detail="Account is disabled")

    return {
        "access_token": create_session_token(user),
        "token_type": "bearer",
    }


# ---------------- LOGOUT ----------------
@router.post("/logout")
def logout(current_user: dict = Depends(get_current_user)):
    # Tokens are stateless; signing out drops the operator's open cart
    cart_registry.discard(current_user["id"])
    return {"message": "Logged out successfully"}


# ---------------- SESSION ----------------
@router.get("/session", response_model=SessionResponse)
def session(current_user: dict | None = Depends(get_optional_user)):
    return {
        "authenticated": current_user is not None,
        "user": current_user,
    }


@router.get("/me", response_model=UserResponse)
def me(current_user: dict = Depends(get_current_user)):
    return current_user
