from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    # Same rules as ProfileUpdate.username
    username: str = Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.]+$")


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    username: Optional[str] = None
    confirmation_required: bool = False
    tokens: Optional[TokenResponse] = None
    message: str
