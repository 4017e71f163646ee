from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
import sys
from typing import Any, Dict

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from sapph.main import app
from sapph.config import get_settings
from sapph.db import close_mongo_connection, connect_to_mongo, get_store
from sapph.db.collections import PROFILES_COLLECTION
from sapph.db.store import MongoDocumentStore

TEST_SECRET = "sapph-test-secret-0123456789abcdef"


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "sapph-test")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("DISCOVERY_TIMEOUT_SECONDS", "5")
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def store() -> MongoDocumentStore:
    return MongoDocumentStore(AsyncMongoMockClient()["sapph-test"])


@pytest.fixture
def make_profile(store: MongoDocumentStore) -> Callable[..., Awaitable[Dict[str, Any]]]:
    async def _make(user_id: str, **fields: Any) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "full_name": user_id.title(),
            "onboarding_completed": True,
            "photos": [f"https://img.example/{user_id}.jpg"],
        }
        document.update(fields)
        await store.set(PROFILES_COLLECTION, user_id, document)
        return document

    return _make


@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    def _headers(user_id: str) -> Dict[str, str]:
        token = jwt.encode({"sub": user_id}, TEST_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("sapph.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def api_client(mongo_client: AsyncMongoMockClient) -> AsyncIterator[AsyncClient]:
    await connect_to_mongo()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await close_mongo_connection()


@pytest.fixture
def api_store(api_client: AsyncClient) -> MongoDocumentStore:
    """The store behind ``api_client``, for seeding and assertions."""

    return get_store()  # type: ignore[return-value]
