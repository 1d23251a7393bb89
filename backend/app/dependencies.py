"""
Request Dependencies
====================
Authentication and ownership checks shared by the routers.

get_current_user:
    Verifies the Supabase JWT from ``Authorization: Bearer <token>`` and
    returns the caller's row from the ``users`` table (id, name, email,
    role). 401 when the header is missing or the token is rejected, 404
    when the token is valid but no profile row exists.

require_admin:
    get_current_user plus role == "admin", else 403.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status

from app.config import get_settings
from app.db.supabase import get_supabase_client
from app.services.entry_store import (
    EntryNotFoundError,
    EntryOwnershipError,
    EntryStore,
    Filter,
    execute_query,
)

logger = logging.getLogger(__name__)


def _unauthorized(message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "code": code},
    )


def get_current_user(
    authorization: Optional[str] = Header(
        default=None, description="Bearer token from Supabase Auth"
    ),
) -> dict:
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Missing or invalid authorization header", "auth_required")

    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise _unauthorized("Empty bearer token", "auth_required")

    db = get_supabase_client()

    try:
        auth_response = db.auth.get_user(token)
    except Exception as exc:
        logger.warning("Auth token verification failed: %s", exc)
        raise _unauthorized("Invalid or expired token", "auth_invalid") from exc

    if not auth_response or not auth_response.user:
        raise _unauthorized("User not found for token", "auth_invalid")

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

    return result.data[0]


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Admin role required", "code": "admin_required"},
        )
    return user


def load_owned_entry(store: EntryStore, entry_id: str, user_id: str) -> dict:
    """Fetch an entry for its owner, mapping store errors to 404 / 403."""
    try:
        return store.find_owned(entry_id, user_id)
    except EntryNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": str(exc), "code": "entry_not_found"},
        ) from exc
    except EntryOwnershipError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": str(exc), "code": "not_owner"},
        ) from exc


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> PageParams:
    """``page`` / ``limit`` query parameters. limit is capped at max_page_size."""
    settings = get_settings()
    return PageParams(page=page, limit=min(limit or settings.default_page_size, settings.max_page_size))


def date_range_filters(
    column: str,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> list[Filter]:
    filters: list[Filter] = []
    if start_date is not None:
        filters.append((column, "gte", start_date))
    if end_date is not None:
        filters.append((column, "lte", end_date))
    return filters
