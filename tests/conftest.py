"""Fixtures compartidos: Supabase en memoria y fábricas de registros."""

import os
from itertools import count
from types import SimpleNamespace

import pytest

os.environ.setdefault("VITRINA_SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("VITRINA_SUPABASE_KEY", "test-key")

from vitrina.config import get_settings  # noqa: E402
from vitrina.database import (  # noqa: E402
    BookingRepository,
    FavoriteRepository,
    ListingRepository,
    ReviewRepository,
)
from vitrina.discovery import ListingStore  # noqa: E402


class StoreUnavailable(Exception):
    """Simula un error de red/permisos del store."""


class UniqueViolation(Exception):
    code = "23505"


class FakeQuery:
    """Imita el query builder fluido de supabase-py sobre listas de dicts."""

    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload = None
        self._filters = []
        self._order = None
        self._limit = None

    def select(self, *_columns):
        self._op = "select"
        return self

    def insert(self, data):
        self._op = "insert"
        self._payload = data
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(f(row) for f in self._filters)

    def execute(self):
        self._db.calls.append((self._table, self._op))
        if self._table in self._db.failing:
            raise StoreUnavailable(f"{self._table} unreachable")

        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "insert":
            record = dict(self._payload)
            unique = self._db.unique.get(self._table)
            if unique and any(
                all(r.get(c) == record.get(c) for c in unique) for r in rows
            ):
                raise UniqueViolation("duplicate key value violates unique constraint")
            record.setdefault("id", f"{self._table}-{next(self._db.ids)}")
            rows.append(record)
            return SimpleNamespace(data=[dict(record)])

        if self._op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        result = [dict(r) for r in rows if self._matches(r)]
        if self._order:
            column, desc = self._order
            result.sort(
                key=lambda r: (r.get(column) is None, r.get(column) or ""),
                reverse=desc,
            )
        if self._limit is not None:
            result = result[: self._limit]
        return SimpleNamespace(data=result)


class FakeSupabase:
    """Reemplazo de SupabaseClient para tests."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.failing: set[str] = set()
        self.unique: dict[str, tuple[str, ...]] = {}
        self.calls: list[tuple[str, str]] = []
        self.ids = count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, rows: list[dict]) -> None:
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def listing_repo(fake_db) -> ListingRepository:
    return ListingRepository(client=fake_db)


@pytest.fixture
def booking_repo(fake_db) -> BookingRepository:
    return BookingRepository(client=fake_db)


@pytest.fixture
def review_repo(fake_db) -> ReviewRepository:
    return ReviewRepository(client=fake_db)


@pytest.fixture
def favorite_repo(fake_db) -> FavoriteRepository:
    return FavoriteRepository(client=fake_db)


@pytest.fixture
def store(listing_repo, booking_repo) -> ListingStore:
    return ListingStore(
        listing_repo=listing_repo,
        booking_repo=booking_repo,
        retry_attempts=2,
        retry_wait_min=0,
        retry_wait_max=0,
    )


def listing_row(listing_id: str, **fields) -> dict:
    row = {
        "id": listing_id,
        "status": "active",
        "title": f"Listing {listing_id}",
        "location": "",
        "description": "",
    }
    row.update(fields)
    return row


def booking_row(listing_id: str, check_in: str, check_out: str, status: str = "confirmed", **fields) -> dict:
    row = {
        "listing_id": listing_id,
        "check_in": check_in,
        "check_out": check_out,
        "status": status,
    }
    row.update(fields)
    return row
