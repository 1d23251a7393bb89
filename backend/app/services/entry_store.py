"""
Entry Store
===========
Table gateway for the three entry kinds (mood, sleep, stress).

Each kind is a closed variant with its own table, its own writable
field list and its own "time column" (the timestamp that lookback
windows and default ordering use). Payloads are filtered against the
field list before they reach PostgREST, so a stray key from a request
body can never be written.

Errors:
    EntryNotFoundError   — no row with that id
    EntryOwnershipError  — row exists but belongs to another user
    EntryStoreError      — PostgREST failed
    EmptyWriteError      — a write returned no row
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.db.supabase import get_supabase_client

logger = logging.getLogger(__name__)

# (column, operator, value) — operator is a PostgREST filter method name
Filter = tuple[str, str, Any]

_FILTER_OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte"})


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class EntryNotFoundError(LookupError):
    def __init__(self, label: str, entry_id: str) -> None:
        super().__init__(f"{label} not found")
        self.label = label
        self.entry_id = entry_id


class EntryOwnershipError(PermissionError):
    def __init__(self, label: str, entry_id: str) -> None:
        super().__init__(f"Not authorized to access this {label.lower()}")
        self.label = label
        self.entry_id = entry_id


class EntryStoreError(RuntimeError):
    """The backing store failed. Surfaced to the client as an upstream failure."""


class EmptyWriteError(EntryStoreError):
    """An insert or update succeeded at the transport level but returned no row."""


# ---------------------------------------------------------------------------
# Entry kinds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntryKind:
    name: str
    table: str
    label: str
    time_column: str
    fields: tuple[str, ...]


ENTRY_KINDS: dict[str, EntryKind] = {
    "mood": EntryKind(
        name="mood",
        table="mood_entries",
        label="Mood entry",
        time_column="created_at",
        fields=("mood", "mood_score", "note", "activities", "triggers"),
    ),
    "sleep": EntryKind(
        name="sleep",
        table="sleep_entries",
        label="Sleep entry",
        time_column="sleep_time",
        fields=(
            "sleep_time",
            "wake_time",
            "quality",
            "interruptions",
            "note",
            "sleep_environment",
            "activities_before_bed",
            "sleep_aids",
            "wake_up_mood",
        ),
    ),
    "stress": EntryKind(
        name="stress",
        table="stress_entries",
        label="Stress entry",
        time_column="created_at",
        fields=(
            "stress_level",
            "stressors",
            "physical_symptoms",
            "coping_methods",
            "note",
            "is_recurring",
        ),
    ),
}


def execute_query(query, table: str, failure_message: str):
    """Run a PostgREST query, re-raising APIError as EntryStoreError."""
    try:
        return query.execute()
    except APIError as exc:
        logger.error("%s (%s): %s", failure_message, table, exc)
        raise EntryStoreError(failure_message) from exc


def is_uuid(value: Any) -> bool:
    """Row ids are uuid columns; anything else can never match a row."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _serialise(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class EntryStore:
    """CRUD and filtered reads for one entry kind."""

    def __init__(self, kind: str, db: Client | None = None) -> None:
        self.kind = ENTRY_KINDS[kind]
        self._db = db or get_supabase_client()

    # ---- helpers ---------------------------------------------------------

    def _table(self):
        return self._db.table(self.kind.table)

    def _execute(self, query, action: str):
        return execute_query(query, self.kind.table, f"Failed to {action} {self.kind.label.lower()}")

    def _clean(self, data: dict) -> dict:
        return {k: _serialise(v) for k, v in data.items() if k in self.kind.fields}

    @staticmethod
    def _apply_filters(query, user_id: str, filters: Iterable[Filter]):
        query = query.eq("user_id", user_id)
        for column, operator, value in filters:
            if operator not in _FILTER_OPERATORS:
                raise ValueError(f"Unsupported filter operator: {operator}")
            query = getattr(query, operator)(column, _serialise(value))
        return query

    # ---- reads -----------------------------------------------------------

    def find(
        self,
        user_id: str,
        filters: Iterable[Filter] = (),
        *,
        order_by: Optional[str] = None,
        desc: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
        columns: str = "*",
    ) -> list[dict]:
        """Return the user's entries matching *filters*, newest first by default."""
        query = self._apply_filters(self._table().select(columns), user_id, filters)
        query = query.order(order_by or self.kind.time_column, desc=desc)
        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        result = self._execute(query, "read")
        return result.data or []

    def find_since(self, user_id: str, since: datetime, columns: str = "*") -> list[dict]:
        """Entries whose time column falls on or after *since*, oldest first."""
        return self.find(
            user_id,
            [(self.kind.time_column, "gte", since)],
            desc=False,
            columns=columns,
        )

    def count(self, user_id: str, filters: Iterable[Filter] = ()) -> int:
        query = self._apply_filters(self._table().select("id", count="exact"), user_id, filters)
        result = self._execute(query, "count")
        return result.count or 0

    def find_by_id(self, entry_id: str) -> Optional[dict]:
        if not is_uuid(entry_id):
            return None
        result = self._execute(
            self._table().select("*").eq("id", entry_id).limit(1),
            "read",
        )
        return result.data[0] if result.data else None

    def find_owned(self, entry_id: str, user_id: str) -> dict:
        """Return the entry, checking that *user_id* owns it."""
        entry = self.find_by_id(entry_id)
        if entry is None:
            raise EntryNotFoundError(self.kind.label, entry_id)
        if str(entry.get("user_id")) != str(user_id):
            raise EntryOwnershipError(self.kind.label, entry_id)
        return entry

    # ---- writes ----------------------------------------------------------

    def create(self, user_id: str, data: dict) -> dict:
        row = {"user_id": user_id, **self._clean(data)}
        result = self._execute(self._table().insert(row), "save")
        if not result.data:
            logger.error("Insert into %s returned no rows for user %s", self.kind.table, user_id)
            raise EmptyWriteError(f"Failed to save {self.kind.label.lower()}")
        logger.info("Created %s %s for user %s", self.kind.name, result.data[0].get("id"), user_id)
        return result.data[0]

    def update_by_id(self, entry_id: str, data: dict) -> dict:
        changes = self._clean(data)
        if not changes:
            existing = self.find_by_id(entry_id)
            if existing is None:
                raise EntryNotFoundError(self.kind.label, entry_id)
            return existing
        result = self._execute(self._table().update(changes).eq("id", entry_id), "update")
        if not result.data:
            raise EmptyWriteError(f"Failed to update {self.kind.label.lower()}")
        return result.data[0]

    def delete_by_id(self, entry_id: str) -> None:
        self._execute(self._table().delete().eq("id", entry_id), "delete")
        logger.info("Deleted %s %s", self.kind.name, entry_id)


def get_entry_store(kind: str) -> EntryStore:
    return EntryStore(kind)
