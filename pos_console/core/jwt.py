# pos_console/core/jwt.py

from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from pos_console.core.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()

    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def create_session_token(profile: dict) -> str:
    # Claims are informational; every request re-reads the profile row
    return create_access_token(
        data={
            "sub": str(profile["id"]),
            "store_id": profile["store_id"],
            "role": profile["role"],
        }
    )


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload
