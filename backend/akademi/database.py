"""
Akademi Backend — Connection Manager
======================================

What:  Owns the single MongoDB client and the named collection handles.
How:   MongoStore.ensure_connection() builds an AsyncMongoClient on first use,
       verifies it with a `ping`, and memoizes the Collections bundle. An
       asyncio.Lock guards initialization so concurrent first requests share
       one connection attempt.
Who:   Created by the app factory and stored on `app.state.store`; the readiness
       middleware and route dependencies read it from there.
When:  First request (or startup, when REQUIRE_DB_ON_STARTUP is set); closed on
       shutdown.

Failure policy:
    A failed attempt leaves nothing memoized and raises StoreUnavailableError,
    which the readiness gate turns into a 503. The next request tries again.
    There is no background reconnect and no backoff.

Pooling:
    pymongo keeps its own connection pool per client (bounded by maxPoolSize).
    One client is shared by every request.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from akademi.config import Settings
from akademi.exceptions import InvalidIdentifierError, StoreUnavailableError

logger = logging.getLogger(__name__)


# ── Fixed names ───────────────────────────────────────────────────────────
DATABASE_NAME = "Akademi"
USERS_COLLECTION = "Users"
SCHOLARSHIPS_COLLECTION = "Scholarships"
REVIEWS_COLLECTION = "Reviews"
APPLICATIONS_COLLECTION = "Application"

COLLECTION_NAMES = (
    USERS_COLLECTION,
    SCHOLARSHIPS_COLLECTION,
    REVIEWS_COLLECTION,
    APPLICATIONS_COLLECTION,
)

ClientFactory = Callable[..., Any]


@dataclass(frozen=True)
class Collections:
    """Named collection handles, available once the store is connected."""

    users: Any
    scholarships: Any
    reviews: Any
    applications: Any


class MongoStore:
    """
    Lazily connected, memoized MongoDB handle.

    Args:
        config: Settings providing the connection string and client bounds.
        client_factory: Callable building the client; defaults to AsyncMongoClient.
            Tests pass a factory returning a mock client.
    """

    def __init__(self, config: Settings, client_factory: Optional[ClientFactory] = None):
        self._settings = config
        self._client_factory = client_factory or AsyncMongoClient
        self._client: Any = None
        self._collections: Optional[Collections] = None
        self._lock = asyncio.Lock()
        self.last_error: Optional[str] = None
        self.connected_at: Optional[datetime] = None

    @property
    def is_connected(self) -> bool:
        return self._collections is not None

    async def ensure_connection(self) -> Collections:
        """
        Return the memoized collections, connecting first if needed.

        Idempotent. Callers that arrive while the first attempt is in flight
        wait on the lock and then receive the same handles.

        Raises:
            StoreUnavailableError: no connection string, or the attempt failed.
        """
        if self._collections is not None:
            return self._collections

        async with self._lock:
            if self._collections is None:
                self._collections = await self._connect()
            return self._collections

    async def _connect(self) -> Collections:
        uri = self._settings.mongo_uri
        if uri is None:
            self.last_error = "No MongoDB connection string configured"
            logger.error("MongoDB connection skipped: set MONGODB_URI or DB_USER/DB_PASS")
            raise StoreUnavailableError(
                message=(
                    "The scholarship database is not configured on this server. "
                    "Set MONGODB_URI or DB_USER/DB_PASS and restart."
                ),
                context={"connection_source": "missing"},
            )

        client = None
        try:
            client = self._client_factory(uri, **self._client_options())
            await client.admin.command("ping")
        except PyMongoError as e:
            self.last_error = f"{type(e).__name__}: {e}"
            logger.error("MongoDB connection error: %s", self.last_error)
            if client is not None:
                await client.close()
            raise StoreUnavailableError(
                context={"error_type": type(e).__name__},
            ) from e

        db = client.get_database(DATABASE_NAME)
        collections = Collections(
            users=db.get_collection(USERS_COLLECTION),
            scholarships=db.get_collection(SCHOLARSHIPS_COLLECTION),
            reviews=db.get_collection(REVIEWS_COLLECTION),
            applications=db.get_collection(APPLICATIONS_COLLECTION),
        )

        self._client = client
        self.last_error = None
        self.connected_at = datetime.now(timezone.utc)
        logger.info("MongoDB connection established (database=%s)", DATABASE_NAME)
        return collections

    def _client_options(self) -> Dict[str, Any]:
        s = self._settings
        return {
            "server_api": ServerApi("1", strict=True, deprecation_errors=True),
            "connectTimeoutMS": s.db_connect_timeout_ms,
            "socketTimeoutMS": s.db_socket_timeout_ms,
            "serverSelectionTimeoutMS": s.db_server_selection_timeout_ms,
            "maxPoolSize": s.db_max_pool_size,
            "tz_aware": True,
        }

    async def close(self) -> None:
        """Close the client and forget the handles. Safe to call when never connected."""
        async with self._lock:
            client, self._client, self._collections = self._client, None, None
        if client is not None:
            await client.close()
            logger.info("MongoDB connection closed")

    def diagnostics(self) -> Dict[str, Any]:
        """Connectivity snapshot for /diag. Never includes the connection string."""
        return {
            "connected": self.is_connected,
            "connection_source": self._settings.connection_source,
            "database_name": DATABASE_NAME,
            "collections": list(COLLECTION_NAMES),
            "last_error": self.last_error,
            "connected_at": self.connected_at.isoformat() if self.connected_at else None,
        }


def parse_object_id(value: str, resource: str = "resource") -> ObjectId:
    """
    Convert a path parameter to an ObjectId.

    Raises:
        InvalidIdentifierError: `value` is not a 24-character hex string.
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise InvalidIdentifierError(resource=resource, identifier=str(value)) from e
