"""
Auth Router
===========
POST /api/v1/auth/register  — Create a Supabase Auth user and its profile row
POST /api/v1/auth/login     — Exchange email + password for an access token
GET  /api/v1/auth/profile   — The caller's profile

Supabase Auth owns credentials and tokens. The ``users`` table holds the
profile (name, email, role) keyed by the auth user id; new accounts
always get role "user". Admins are promoted directly in the database.

If the profile row cannot be written after sign-up, the new auth account
is deleted again so the email stays free to register.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.db.supabase import get_supabase_client
from app.dependencies import get_current_user
from app.models.auth import AuthResponse, LoginRequest, RegisterRequest, UserProfile
from app.models.common import DataResponse
from app.services.entry_store import EmptyWriteError, EntryStoreError, execute_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _access_token(auth_response) -> str | None:
    session = getattr(auth_response, "session", None)
    return session.access_token if session else None


def _discard_auth_user(db, user_id: str) -> None:
    """Remove an auth account whose profile row could not be written."""
    try:
        db.auth.admin.delete_user(user_id)
    except Exception:
        logger.exception("Could not remove auth user %s after a failed registration", user_id)


@router.post(
    "/register",
    response_model=DataResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Email already registered"}},
)
async def register(body: RegisterRequest) -> DataResponse[AuthResponse]:
    db = get_supabase_client()
    email = body.email.strip().lower()

    existing = execute_query(
        db.table("users").select("id").eq("email", email).limit(1),
        "users",
        "Failed to check existing users",
    )
    if existing.data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "User already exists", "code": "user_exists"},
        )

    try:
        auth_response = db.auth.sign_up(
            {
                "email": email,
                "password": body.password,
                "options": {"data": {"name": body.name}},
            }
        )
    except Exception as exc:
        logger.warning("Supabase sign_up failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Registration failed", "code": "registration_failed"},
        ) from exc

    if not auth_response or not auth_response.user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Registration failed", "code": "registration_failed"},
        )

    profile = {"id": auth_response.user.id, "name": body.name, "email": email, "role": "user"}
    try:
        result = execute_query(db.table("users").insert(profile), "users", "Failed to save user profile")
        if not result.data:
            raise EmptyWriteError("Failed to save user profile")
    except EntryStoreError:
        logger.error("Failed to insert profile for auth user %s", auth_response.user.id)
        _discard_auth_user(db, auth_response.user.id)
        raise

    logger.info("Registered user %s", auth_response.user.id)
    return DataResponse[AuthResponse](
        data=AuthResponse(
            id=str(auth_response.user.id),
            name=body.name,
            email=email,
            token=_access_token(auth_response),
        )
    )


@router.post(
    "/login",
    response_model=DataResponse[AuthResponse],
    responses={401: {"description": "Invalid credentials"}},
)
async def login(body: LoginRequest) -> DataResponse[AuthResponse]:
    db = get_supabase_client()
    email = body.email.strip().lower()

    try:
        auth_response = db.auth.sign_in_with_password({"email": email, "password": body.password})
    except Exception as exc:
        logger.info("Login rejected for %s: %s", email, exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid credentials", "code": "invalid_credentials"},
        ) from exc

    if not auth_response or not auth_response.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid credentials", "code": "invalid_credentials"},
        )

    result = execute_query(
        db.table("users").select("*").eq("id", auth_response.user.id).limit(1),
        "users",
        "Failed to load user profile",
    )
    if not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "User profile not found", "code": "user_not_found"},
        )

    profile = result.data[0]
    return DataResponse[AuthResponse](
        data=AuthResponse(
            id=str(profile["id"]),
            name=profile.get("name") or "",
            email=profile.get("email") or email,
            token=_access_token(auth_response),
        )
    )


@router.get("/profile", response_model=DataResponse[UserProfile])
async def get_profile(user: dict = Depends(get_current_user)) -> DataResponse[UserProfile]:
    return DataResponse[UserProfile](data=UserProfile(**user))
