from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient

from docmarket.api.deps import CallerIdentity, get_caller, get_database, get_document_store
from docmarket.main import app


class FakeDatabase:
    def __init__(self) -> None:
        self.transactions = 0
        self.commit_error: Exception | None = None

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield object()
        if self.commit_error is not None:
            raise self.commit_error


class MemoryDocumentStore:
    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self.blobs = dict(blobs or {})

    def read(self, storage_key: str) -> bytes:
        return self.blobs[storage_key]

    def write(self, storage_key: str, payload: bytes) -> None:
        self.blobs[storage_key] = payload

    def delete(self, storage_key: str) -> None:
        self.blobs.pop(storage_key, None)


@pytest.fixture
def fake_database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def api_client(
    fake_database: FakeDatabase,
    memory_store: MemoryDocumentStore,
) -> Iterator[Callable[..., TestClient]]:
    def _build(*, user_id: int = 7, role: str = "user") -> TestClient:
        app.dependency_overrides[get_caller] = lambda: CallerIdentity(user_id=user_id, role=role)
        app.dependency_overrides[get_database] = lambda: fake_database
        app.dependency_overrides[get_document_store] = lambda: memory_store
        return TestClient(app)

    yield _build
    app.dependency_overrides.clear()
