"""
Akademi Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The MongoDB client is replaced by a MagicMock whose collections mimic
       the pymongo async API (awaitable find_one/insert_one/update_one/
       aggregate, synchronous find() returning a chainable cursor). Stripe is
       replaced by a mock StripeClient. No network access is needed.

Fixture Hierarchy:
    Function-scoped:
    ├── collections:     dict of mock collections keyed by collection name
    ├── mongo_client:    mock AsyncMongoClient serving those collections
    ├── client_factory:  mock factory returning mongo_client
    ├── stripe_client:   mock StripeClient
    ├── test_settings:   Settings pointing at a fake URI
    ├── app:             application built around the mocks
    └── test_client:     HTTPX AsyncClient bound to `app`
"""

import os
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Before any akademi import: the module-level app reads these
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["APP_ENV"] = "test"

from akademi.config import Settings  # noqa: E402
from akademi.database import COLLECTION_NAMES, SCHOLARSHIPS_COLLECTION, USERS_COLLECTION  # noqa: E402
from akademi.main import create_app  # noqa: E402
from akademi.services.payment_service import PaymentService  # noqa: E402

TEST_MONGODB_URI = "mongodb://akademi-test:27017/"

ADMIN_EMAIL = "admin@akademi.test"
MODERATOR_EMAIL = "moderator@akademi.test"
USER_EMAIL = "student@akademi.test"


# ══════════════════════════════════════════════════════════════════════════
# Mock helpers
# ══════════════════════════════════════════════════════════════════════════

def make_cursor(documents: Optional[List[Dict[str, Any]]] = None) -> MagicMock:
    """A cursor whose sort()/limit() chain back to itself and whose to_list() is awaitable."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(documents or []))
    return cursor


def make_collection(documents: Optional[List[Dict[str, Any]]] = None) -> MagicMock:
    collection = MagicMock()
    collection.find.return_value = make_cursor(documents)
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(
        return_value=MagicMock(acknowledged=True, inserted_id=ObjectId())
    )
    collection.update_one = AsyncMock(
        return_value=MagicMock(acknowledged=True, matched_count=1, modified_count=1, upserted_id=None)
    )
    collection.aggregate = AsyncMock(return_value=make_cursor([]))
    return collection


def users_lookup(records: Dict[str, Dict[str, Any]]):
    """find_one side effect answering {"userEmail": ...} queries from `records`."""

    def find_one(query, *args, **kwargs):
        return records.get(query.get("userEmail"))

    return find_one


def make_test_settings(**overrides) -> Settings:
    values = {"mongodb_uri": TEST_MONGODB_URI, "log_level": "WARNING"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def collections() -> Dict[str, MagicMock]:
    """
    Mock collections, keyed by their store name.

    The Users collection knows one account per role.
    """
    mocks = {name: make_collection() for name in COLLECTION_NAMES}
    mocks[USERS_COLLECTION].find_one = AsyncMock(side_effect=users_lookup({
        ADMIN_EMAIL: {"_id": ObjectId(), "userEmail": ADMIN_EMAIL, "role": "admin"},
        MODERATOR_EMAIL: {"_id": ObjectId(), "userEmail": MODERATOR_EMAIL, "role": "moderator"},
        USER_EMAIL: {"_id": ObjectId(), "userEmail": USER_EMAIL, "role": "user"},
    }))
    return mocks


@pytest.fixture
def users(collections) -> MagicMock:
    return collections[USERS_COLLECTION]


@pytest.fixture
def scholarships(collections) -> MagicMock:
    return collections[SCHOLARSHIPS_COLLECTION]


@pytest.fixture
def mongo_client(collections) -> MagicMock:
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.close = AsyncMock()
    client.get_database.return_value.get_collection.side_effect = lambda name: collections[name]
    return client


@pytest.fixture
def client_factory(mongo_client) -> MagicMock:
    return MagicMock(return_value=mongo_client)


@pytest.fixture
def stripe_client() -> MagicMock:
    client = MagicMock()
    client.payment_intents.create.return_value = MagicMock(
        id="pi_test_123", client_secret="pi_test_123_secret_abc"
    )
    return client


@pytest.fixture
def test_settings() -> Settings:
    return make_test_settings()


@pytest.fixture
def app(test_settings, client_factory, stripe_client):
    return create_app(
        config=test_settings,
        client_factory=client_factory,
        payment_service=PaymentService("sk_test_not_real", client=stripe_client),
    )


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the app.

    ASGITransport does not run the lifespan, so the first gated request is
    what connects the store.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
