from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Literal


class SignupRequest(BaseModel):
    email: EmailStr = Field(..., description="Admin's email address")
    password: str = Field(..., min_length=8, max_length=72, description="Plain password (will be hashed). Minimum 8 characters.")
    full_name: str = Field(..., min_length=1, description="Admin's display name")
    store_name: str = Field(..., min_length=1, description="Name of the store being registered")


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    full_name: str = Field(..., min_length=1)
    phone: str | None = None
    role: Literal["admin", "employee"] = "employee"


class UserUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1)
    phone: str | None = None
    role: Literal["admin", "employee"] | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    full_name: str | None
    phone: str | None = None
    role: str
    store_id: int | None
    is_active: bool
    created_at: datetime


class SessionResponse(BaseModel):
    authenticated: bool
    user: UserResponse | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
