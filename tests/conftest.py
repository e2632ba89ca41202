"""Shared pytest fixtures for the Express Entry tools tests."""

from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.auth.jwt import create_access_token
from app.crs.crs_calculator import EECriteria, LanguageScores


def clb(level: int) -> LanguageScores:
    return LanguageScores(reading=level, writing=level, listening=level, speaking=level)


def _make_criteria(**overrides) -> EECriteria:
    """Single 29-year-old, bachelor's, CLB 9 English, 1 year Canadian work."""
    fields = dict(
        age=29,
        has_spouse=False,
        education_level="bachelors",
        first_language_test="ielts",
        first_language=clb(9),
        canadian_work_experience=1,
    )
    fields.update(overrides)
    return EECriteria(**fields)


@pytest.fixture()
def make_criteria():
    return _make_criteria


# --- In-memory stand-in for the motor collections the routes use ---


def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(k) == v for k, v in query.items())


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = list(docs)

    def sort(self, key: str, direction: int = 1):
        self._docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return self

    def limit(self, n: int):
        self._docs = self._docs[:n]
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


class FakeCollection:
    def __init__(self):
        self.docs: list[dict] = []
        self.indexes: list = []

    async def insert_one(self, doc: dict):
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict):
        for doc in self.docs:
            if _matches(doc, query):
                return dict(doc)
        return None

    def find(self, query: dict | None = None):
        return FakeCursor([dict(d) for d in self.docs if _matches(d, query or {})])

    async def create_index(self, keys, **kwargs):
        self.indexes.append(keys)
        return "_".join(f"{k}_{d}" for k, d in keys)


class FakeDatabase:
    def __init__(self):
        self._collections: dict[str, FakeCollection] = {}

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._collections.setdefault(name, FakeCollection())

    def __getitem__(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection())


class FakeMongoClient:
    def __init__(self):
        self._dbs: dict[str, FakeDatabase] = {}

    def __getitem__(self, name: str) -> FakeDatabase:
        return self._dbs.setdefault(name, FakeDatabase())

    def close(self):
        pass


@pytest.fixture()
def fake_db():
    from app.main import app

    client = FakeMongoClient()
    app.state.mongo_client = client
    app.state.db_name = "ee_tools_test"
    yield client["ee_tools_test"]
    app.state.mongo_client = None


@pytest.fixture()
def client(fake_db) -> TestClient:
    from app.main import app

    # Not used as a context manager, so startup does not replace the fake client
    return TestClient(app)


@pytest.fixture()
def user_id(fake_db) -> str:
    oid = ObjectId()
    fake_db.users.docs.append({"_id": oid, "name": "Test User", "email": "test@example.com"})
    return str(oid)


@pytest.fixture()
def auth_headers(user_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
