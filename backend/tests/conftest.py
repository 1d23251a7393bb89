"""
Shared test fixtures
====================
FakeSupabase is an in-memory stand-in for the supabase-py client: it
implements the slice of the PostgREST query builder the app uses
(select / insert / update / delete, eq / neq / gt / gte / lt / lte,
contains / overlaps / ilike, order / range / limit, count="exact") and a
minimal ``auth`` with get_user / sign_up / sign_in_with_password and
``admin.delete_user``. Like the real uuid column, an ``eq("id", ...)``
with a malformed id fails with PostgREST error 22P02.

The ``fake_db`` fixture installs it behind get_supabase_client() and
resets every service singleton so each test starts from empty tables.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.db.supabase import get_supabase_client
from tests.factories import iso


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _coerce(value: Any) -> Any:
    """Compare ISO timestamps as datetimes, everything else as-is."""
    if isinstance(value, str) and len(value) >= 10 and value[4:5] == "-" and value[7:8] == "-":
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Query builder
# ---------------------------------------------------------------------------

class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._columns = "*"
        self._count: Optional[str] = None
        self._filters: list[Callable[[dict], bool]] = []
        self._orders: list[tuple[str, bool]] = []
        self._range: Optional[tuple[int, int]] = None
        self._limit: Optional[int] = None
        self._bad_uuid: Optional[str] = None

    # ---- operations ------------------------------------------------------

    def select(self, *columns: str, count: Optional[str] = None) -> "FakeQuery":
        self._op = "select"
        self._columns = ",".join(columns) if columns else "*"
        self._count = count
        return self

    def insert(self, row: dict) -> "FakeQuery":
        self._op = "insert"
        self._payload = row
        return self

    def update(self, changes: dict) -> "FakeQuery":
        self._op = "update"
        self._payload = changes
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    # ---- filters ---------------------------------------------------------

    def _where(self, predicate: Callable[[dict], bool]) -> "FakeQuery":
        self._filters.append(predicate)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        if column == "id" and not _is_uuid(value):
            self._bad_uuid = str(value)
        return self._where(lambda r: _coerce(r.get(column)) == _coerce(value))

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._where(lambda r: _coerce(r.get(column)) != _coerce(value))

    def gt(self, column: str, value: Any) -> "FakeQuery":
        return self._where(lambda r: r.get(column) is not None and _coerce(r[column]) > _coerce(value))

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._where(lambda r: r.get(column) is not None and _coerce(r[column]) >= _coerce(value))

    def lt(self, column: str, value: Any) -> "FakeQuery":
        return self._where(lambda r: r.get(column) is not None and _coerce(r[column]) < _coerce(value))

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._where(lambda r: r.get(column) is not None and _coerce(r[column]) <= _coerce(value))

    def contains(self, column: str, values: list) -> "FakeQuery":
        return self._where(lambda r: all(v in (r.get(column) or []) for v in values))

    def overlaps(self, column: str, values: list) -> "FakeQuery":
        return self._where(lambda r: any(v in (r.get(column) or []) for v in values))

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        needle = pattern.strip("%").lower()
        return self._where(lambda r: needle in str(r.get(column) or "").lower())

    # ---- shaping ---------------------------------------------------------

    def order(self, column: str, *, desc: bool = False, **_: Any) -> "FakeQuery":
        self._orders.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    # ---- execution -------------------------------------------------------

    def _matching(self) -> list[dict]:
        rows = self._db.tables.setdefault(self._table, [])
        return [r for r in rows if all(f(r) for f in self._filters)]

    def _project(self, row: dict) -> dict:
        if self._columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self._columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self) -> SimpleNamespace:
        if self._table in self._db.failing_tables:
            raise APIError({"message": "connection refused", "code": "PGRST000"})
        if self._bad_uuid is not None:
            raise APIError({"message": f"invalid input syntax for type uuid: \"{self._bad_uuid}\"", "code": "22P02"})

        if self._op == "insert":
            row = {
                "id": str(uuid.uuid4()),
                "created_at": iso(datetime.now(timezone.utc)),
                **copy.deepcopy(self._payload),
            }
            if self._table not in self._db.swallow_writes:
                self._db.tables.setdefault(self._table, []).append(row)
                return SimpleNamespace(data=[copy.deepcopy(row)], count=None)
            return SimpleNamespace(data=[], count=None)

        if self._op == "update":
            updated = []
            if self._table not in self._db.swallow_writes:
                for row in self._matching():
                    row.update(copy.deepcopy(self._payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated, count=None)

        if self._op == "delete":
            doomed = self._matching()
            rows = self._db.tables.setdefault(self._table, [])
            self._db.tables[self._table] = [r for r in rows if r not in doomed]
            return SimpleNamespace(data=copy.deepcopy(doomed), count=None)

        rows = self._matching()
        total = len(rows) if self._count == "exact" else None
        for column, desc in reversed(self._orders):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: _coerce(r[column]), reverse=desc)
            rows = present + missing
        if self._range is not None:
            start, end = self._range
            rows = rows[start : end + 1]
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(data=[self._project(r) for r in rows], count=total)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class FakeAuth:
    def __init__(self) -> None:
        self.tokens: dict[str, str] = {}
        self.accounts: dict[str, tuple[str, str]] = {}
        self.admin = SimpleNamespace(delete_user=self._delete_user)
        self.deleted_users: list[str] = []

    def issue_token(self, user_id: str) -> str:
        token = f"token-{user_id}"
        self.tokens[token] = user_id
        return token

    def _session(self, user_id: str) -> SimpleNamespace:
        return SimpleNamespace(
            user=SimpleNamespace(id=user_id),
            session=SimpleNamespace(access_token=self.issue_token(user_id)),
        )

    def get_user(self, token: str) -> SimpleNamespace:
        if token not in self.tokens:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[token]))

    def sign_up(self, credentials: dict) -> SimpleNamespace:
        email = credentials["email"]
        if email in self.accounts:
            raise Exception("User already registered")
        user_id = str(uuid.uuid4())
        self.accounts[email] = (credentials["password"], user_id)
        return self._session(user_id)

    def _delete_user(self, user_id: str) -> None:
        self.deleted_users.append(user_id)
        self.accounts = {e: acct for e, acct in self.accounts.items() if acct[1] != user_id}

    def sign_in_with_password(self, credentials: dict) -> SimpleNamespace:
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return self._session(account[1])


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.auth = FakeAuth()
        self.failing_tables: set[str] = set()
        self.swallow_writes: set[str] = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, row: dict) -> dict:
        row = {"id": str(uuid.uuid4()), "created_at": iso(datetime.now(timezone.utc)), **row}
        self.tables.setdefault(table, []).append(row)
        return row

    def add_user(self, name: str = "Test User", email: Optional[str] = None, role: str = "user") -> dict:
        user_id = str(uuid.uuid4())
        return self.seed(
            "users",
            {"id": user_id, "name": name, "email": email or f"{user_id[:8]}@example.com", "role": role},
        )

    def headers_for(self, user: dict) -> dict:
        return {"Authorization": f"Bearer {self.auth.issue_token(user['id'])}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_SINGLETON_MODULES = (
    "app.services.analytics",
    "app.services.affirmations",
    "app.services.roadmap",
    "app.services.text_generation",
)


@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    db = FakeSupabase()
    monkeypatch.setattr("app.db.supabase.create_client", lambda url, key: db)
    get_supabase_client.cache_clear()
    for module in _SINGLETON_MODULES:
        monkeypatch.setattr(f"{module}._default_service", None)
    yield db
    get_supabase_client.cache_clear()


@pytest.fixture
def client(fake_db) -> TestClient:
    from app.main import app

    return TestClient(app)


@pytest.fixture
def user(fake_db) -> dict:
    return fake_db.add_user(name="Alex", email="alex@example.com")


@pytest.fixture
def auth_headers(fake_db, user) -> dict:
    return fake_db.headers_for(user)


@pytest.fixture
def other_user(fake_db) -> dict:
    return fake_db.add_user(name="Sam", email="sam@example.com")


@pytest.fixture
def admin(fake_db) -> dict:
    return fake_db.add_user(name="Admin", email="admin@example.com", role="admin")
