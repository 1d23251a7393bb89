"""
Auth Schemas
============
Register / login payloads and the user profile returned by /auth/profile.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=_EMAIL_PATTERN, max_length=254)
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=_EMAIL_PATTERN, max_length=254)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    id: str
    name: str
    email: str
    token: Optional[str] = Field(
        default=None,
        description="Supabase access token. Null until the email is confirmed, "
                    "if confirmation is enabled on the project.",
    )


class UserProfile(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: Literal["user", "admin"] = "user"
