"""
Affirmation Library
===================
Reads and single-row read-modify-write mutations on the ``affirmations``
table.

favorites is a set of user ids stored as a text[] column; favorite_count
is rewritten from it on every favorite/unfavorite so the two never drift.
Ratings fold into ``effectiveness`` as a running mean:

    effectiveness' = (effectiveness · n + rating) / (n + 1),   n' = n + 1

Who may change what:
    admin       create (system affirmation), update, delete any
    other user  create (custom affirmation), update/delete own custom ones
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Optional

from supabase import Client

from app.db.supabase import get_supabase_client
from app.services.entry_store import EmptyWriteError, execute_query, is_uuid

logger = logging.getLogger(__name__)

TABLE = "affirmations"


class AffirmationNotFoundError(LookupError):
    def __init__(self, affirmation_id: str) -> None:
        super().__init__("Affirmation not found")
        self.affirmation_id = affirmation_id


class AffirmationPermissionError(PermissionError):
    def __init__(self, affirmation_id: str) -> None:
        super().__init__("Not authorized to modify this affirmation")
        self.affirmation_id = affirmation_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def can_manage(affirmation: dict, user: dict) -> bool:
    if user.get("role") == "admin":
        return True
    return bool(affirmation.get("is_custom")) and str(affirmation.get("created_by")) == str(user["id"])


class AffirmationService:
    def __init__(self, db: Client | None = None) -> None:
        self._db = db or get_supabase_client()

    # ---- helpers ---------------------------------------------------------

    def _table(self):
        return self._db.table(TABLE)

    def _execute(self, query, action: str):
        return execute_query(query, TABLE, f"Failed to {action} affirmation")

    def _find(self, affirmation_id: str) -> Optional[dict]:
        if not is_uuid(affirmation_id):
            return None
        result = self._execute(
            self._table().select("*").eq("id", affirmation_id).limit(1),
            "read",
        )
        return result.data[0] if result.data else None

    def _require(self, affirmation_id: str, *, active_only: bool = False) -> dict:
        row = self._find(affirmation_id)
        if row is None or (active_only and not row.get("is_active", True)):
            raise AffirmationNotFoundError(affirmation_id)
        return row

    def _write(self, affirmation_id: str, changes: dict) -> dict:
        result = self._execute(
            self._table().update(changes).eq("id", affirmation_id),
            "update",
        )
        if not result.data:
            raise EmptyWriteError("Failed to update affirmation")
        return result.data[0]

    def _record_use(self, row: dict) -> dict:
        return self._write(
            row["id"],
            {"usage_count": int(row.get("usage_count") or 0) + 1, "last_used": _now()},
        )

    # ---- reads -----------------------------------------------------------

    def list_active(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[dict], int]:
        """One page of active affirmations, most favorited then most used first."""
        query = self._table().select("*", count="exact").eq("is_active", True)
        if category:
            query = query.eq("category", category)
        if search:
            query = query.ilike("text", f"%{search}%")

        offset = (page - 1) * limit
        query = (
            query.order("favorite_count", desc=True)
            .order("usage_count", desc=True)
            .range(offset, offset + limit - 1)
        )
        result = self._execute(query, "read")
        return result.data or [], result.count or 0

    def pick_random(
        self,
        *,
        mood: Optional[str] = None,
        category: Optional[str] = None,
        rng: random.Random | None = None,
    ) -> dict:
        """A random active affirmation for *mood* (or one tagged "all")."""

        def filtered(query):
            query = query.eq("is_active", True)
            if mood:
                query = query.overlaps("mood_association", ["all", mood])
            if category:
                query = query.eq("category", category)
            return query

        counted = self._execute(filtered(self._table().select("id", count="exact")), "count")
        total = counted.count or 0
        if total == 0:
            raise AffirmationNotFoundError("random")

        offset = (rng or random).randrange(total)
        picked = self._execute(
            filtered(self._table().select("*")).order("id").range(offset, offset),
            "read",
        )
        if not picked.data:
            raise AffirmationNotFoundError("random")
        return self._record_use(picked.data[0])

    def get(self, affirmation_id: str) -> dict:
        """Fetch an active affirmation and count the view."""
        return self._record_use(self._require(affirmation_id, active_only=True))

    def favorites(self, user_id: str, limit: Optional[int] = None) -> list[dict]:
        query = (
            self._table()
            .select("*")
            .eq("is_active", True)
            .contains("favorites", [user_id])
            .order("favorite_count", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query, "read").data or []

    # ---- favorites & ratings ---------------------------------------------

    def _set_favorites(self, row: dict, favorites: list[str]) -> dict:
        return self._write(
            row["id"],
            {"favorites": favorites, "favorite_count": len(favorites)},
        )

    def add_favorite(self, affirmation_id: str, user_id: str) -> dict:
        row = self._require(affirmation_id)
        favorites = [str(f) for f in row.get("favorites") or []]
        if user_id not in favorites:
            favorites.append(user_id)
        return self._set_favorites(row, favorites)

    def remove_favorite(self, affirmation_id: str, user_id: str) -> dict:
        row = self._require(affirmation_id)
        favorites = [str(f) for f in row.get("favorites") or [] if str(f) != user_id]
        return self._set_favorites(row, favorites)

    def rate(self, affirmation_id: str, rating: int) -> dict:
        row = self._require(affirmation_id)
        n = int(row.get("rating_count") or 0)
        effectiveness = float(row.get("effectiveness") or 0.0)
        return self._write(
            affirmation_id,
            {
                "effectiveness": (effectiveness * n + rating) / (n + 1),
                "rating_count": n + 1,
            },
        )

    # ---- admin / author writes -------------------------------------------

    def create(self, user: dict, data: dict) -> dict:
        is_admin = user.get("role") == "admin"
        row = {
            **data,
            "favorites": [],
            "favorite_count": 0,
            "usage_count": 0,
            "effectiveness": 0.0,
            "rating_count": 0,
            "is_active": True,
            "is_custom": not is_admin,
            "source": "system" if is_admin else "user",
            "created_by": user["id"],
        }
        result = self._execute(self._table().insert(row), "save")
        if not result.data:
            raise EmptyWriteError("Failed to save affirmation")
        logger.info(
            "Created %s affirmation %s by %s",
            row["source"], result.data[0].get("id"), user["id"],
        )
        return result.data[0]

    def update(self, affirmation_id: str, user: dict, changes: dict) -> dict:
        row = self._require(affirmation_id)
        if not can_manage(row, user):
            raise AffirmationPermissionError(affirmation_id)
        if not changes:
            return row
        return self._write(affirmation_id, changes)

    def delete(self, affirmation_id: str, user: dict) -> None:
        row = self._require(affirmation_id)
        if not can_manage(row, user):
            raise AffirmationPermissionError(affirmation_id)
        self._execute(self._table().delete().eq("id", affirmation_id), "delete")
        logger.info("Deleted affirmation %s by %s", affirmation_id, user["id"])


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_service: AffirmationService | None = None


def get_affirmation_service() -> AffirmationService:
    global _default_service
    if _default_service is None:
        _default_service = AffirmationService()
    return _default_service
