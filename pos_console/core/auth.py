# pos_console/core/auth.py

from fastapi import Depends, HTTPException, status

from pos_console.core.jwt import decode_access_token
from pos_console.core.oauth2 import oauth2_scheme, optional_oauth2_scheme
from pos_console.services.data_service import DataService, get_data_service


def _resolve_user(token: str | None, data: DataService):
    if not token:
        return None, "Not authenticated"

    payload = decode_access_token(token)

    if payload is None:
        return None, "Invalid or expired token"

    user_id = payload.get("sub")

    if user_id is None or not str(user_id).isdigit():
        return None, "Invalid token payload"

    user = data.get("users_profile", int(user_id))

    if user is None:
        return None, "User not found"

    if not user["is_active"]:
        return None, "Account is disabled"

    return user, None


def get_current_user(
    token: str = Depends(oauth2_scheme),
    data: DataService = Depends(get_data_service),
):
    user, error = _resolve_user(token, data)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    data: DataService = Depends(get_data_service),
):
    user, _ = _resolve_user(token, data)
    return user


def get_admin_user(
    current_user: dict = Depends(get_current_user),
):
    # Staff management is limited to store admins
    if current_user["role"] != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
