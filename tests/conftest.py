"""Shared pytest fixtures."""

import copy
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

import email_validator
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from fitclub.app import App
from fitclub.config import Config
from fitclub.core.core import Core
from fitclub.web.server import create_fastapi_app

ADMIN_EMAIL = "admin@fitclub.test"
ADMIN_PASSWORD = "admin-secret"


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict) and condition and all(op.startswith("$") for op in condition):
            for op, arg in condition.items():
                if op == "$ne" and not value != arg:
                    return False
                if op == "$lt" and (value is None or not value < arg):
                    return False
                if op == "$lte" and (value is None or not value <= arg):
                    return False
                if op == "$gt" and (value is None or not value > arg):
                    return False
                if op == "$gte" and (value is None or not value >= arg):
                    return False
                if op == "$exists" and (key in doc) != arg:
                    return False
                if op == "$in" and value not in arg:
                    return False
        elif value != condition:
            return False
    return True


def _apply(doc: dict[str, Any], update: dict[str, Any]) -> None:
    for key, value in update.get("$set", {}).items():
        doc[key] = value
    for key in update.get("$unset", {}):
        doc.pop(key, None)
    for key, value in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + value


class FakeCursor:
    """Subset of AsyncCursor: sort, skip, limit and async iteration."""

    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs
        self._skip = 0
        self._limit = 0

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._docs.sort(key=lambda d: d[key], reverse=direction == -1)
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._skip = count
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._limit = count
        return self

    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        docs = self._docs[self._skip :]
        if self._limit:
            docs = docs[: self._limit]
        for doc in docs:
            yield doc


class FakeCollection:
    """In-memory stand-in for the parts of AsyncCollection the services use.

    Set `error` to make every operation raise it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.error: PyMongoError | None = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def create_index(self, keys: Any, **kwargs: Any) -> str:
        self._check()
        return "_".join(f"{k}_{d}" for k, d in keys)

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        self._check()
        self.docs.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document.get("_id"))

    async def find_one(self, query: dict[str, Any] | None = None, sort: Any = None) -> dict[str, Any] | None:
        self._check()
        for doc in self.docs:
            if _matches(doc, query or {}):
                return copy.deepcopy(doc)
        return None

    def find(self, query: dict[str, Any] | None = None) -> FakeCursor:
        self._check()
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query or {})])

    async def count_documents(self, query: dict[str, Any]) -> int:
        self._check()
        return sum(1 for d in self.docs if _matches(d, query))

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        self._check()
        for doc in self.docs:
            if _matches(doc, query):
                before = copy.deepcopy(doc)
                _apply(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=int(doc != before))
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def find_one_and_update(
        self, query: dict[str, Any], update: dict[str, Any], return_document: bool = ReturnDocument.BEFORE
    ) -> dict[str, Any] | None:
        self._check()
        for doc in self.docs:
            if _matches(doc, query):
                before = copy.deepcopy(doc)
                _apply(doc, update)
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2025, 1, 15, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture(autouse=True)
def allow_test_domains(monkeypatch: pytest.MonkeyPatch) -> None:
    """Accept addresses under the reserved `.test` domain used throughout the suite."""
    monkeypatch.setattr(email_validator, "TEST_ENVIRONMENT", True)


@pytest.fixture
def config() -> Config:
    return Config(
        _env_file=None,
        database_url="mongodb://localhost:27017/fitclub_test",
        bcrypt_rounds=4,
        expose_reset_token=True,
        frontend_url="http://club.test",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reset_clock(clock: FakeClock, monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Drive the password reset service from the fake clock."""
    monkeypatch.setattr("fitclub.core.modules.password_reset.service.now", clock)
    return clock


@pytest_asyncio.fixture
async def core(config: Config, database: FakeDatabase) -> AsyncIterator[Core]:
    core = Core(config, database)  # type: ignore[arg-type]
    await core.on_start()
    yield core
    await core.on_stop()


@pytest.fixture
def client(config: Config, database: FakeDatabase) -> Iterator[TestClient]:
    app = App(config, database)  # type: ignore[arg-type]
    with TestClient(create_fastapi_app(app, config)) as test_client:
        yield test_client
