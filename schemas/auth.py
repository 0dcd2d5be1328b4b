from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    extra: Dict[str, Any] = Field(default_factory=dict)


class UserDisplay(BaseModel):
    user_id: Optional[str] = None
    username: str
    email: Optional[str] = None
    is_admin: bool = False


class SessionResponse(BaseModel):
    success: bool
    user: Optional[UserDisplay] = None
    access_token: Optional[str] = None
    token_type: str = "bearer"
    error: Optional[str] = None
