"""
Akademi Backend — Shared Response Schemas
===========================================

What:  Pydantic models for write results, probes and errors, plus the JSON
       conversion used for raw store documents.
How:   Write-result models use camelCase aliases (insertedId, matchedCount, ...)
       because the front end reads those keys. FastAPI serializes response
       models by alias.

Scholarship and user documents are returned as-is (after to_jsonable) rather
than through a schema: the store is schemaless and records are passed through.
"""

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field


def to_jsonable(value: Any) -> Any:
    """Convert store documents (ObjectId, datetime, nested lists) to JSON-safe values."""
    return jsonable_encoder(value, custom_encoder={ObjectId: str})


# ══════════════════════════════════════════════════════════════════════════
# Write Results
# ══════════════════════════════════════════════════════════════════════════


class InsertResultResponse(BaseModel):
    """
    Result of an insert-one.

    `inserted_id` is null when create-user found an existing record; `message`
    is only set in that case.
    """
    acknowledged: bool = Field(default=True)
    inserted_id: Optional[str] = Field(default=None, alias="insertedId")
    message: Optional[str] = Field(default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(cls, result: Any) -> "InsertResultResponse":
        """Build from a pymongo InsertOneResult."""
        return cls(
            acknowledged=result.acknowledged,
            inserted_id=str(result.inserted_id) if result.inserted_id is not None else None,
        )


class UpdateResultResponse(BaseModel):
    """Result of an update-one, in the driver's camelCase shape."""
    acknowledged: bool = Field(default=True)
    matched_count: int = Field(alias="matchedCount")
    modified_count: int = Field(alias="modifiedCount")
    upserted_count: int = Field(default=0, alias="upsertedCount")
    upserted_id: Optional[str] = Field(default=None, alias="upsertedId")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(cls, result: Any) -> "UpdateResultResponse":
        """Build from a pymongo UpdateResult."""
        upserted_id = result.upserted_id
        return cls(
            acknowledged=result.acknowledged,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            upserted_count=0 if upserted_id is None else 1,
            upserted_id=None if upserted_id is None else str(upserted_id),
        )


# ══════════════════════════════════════════════════════════════════════════
# Probes
# ══════════════════════════════════════════════════════════════════════════


class HealthResponse(BaseModel):
    """Liveness plus a connectivity flag. Does not trigger a connection attempt."""
    status: str = Field(description="Always 'Operational' while the process serves requests")
    database: str = Field(description="'Online' once connected, 'Connecting' before")
    timestamp: datetime = Field(description="Server time (UTC)")
    version: str = Field(description="Application version")
    uptime_seconds: float = Field(description="Seconds since the module was loaded")


class DatabaseDiagnostics(BaseModel):
    connected: bool
    connection_source: str = Field(description="uri, credentials or missing")
    database_name: str
    collections: list[str]
    last_error: Optional[str] = None
    connected_at: Optional[str] = None


class PaymentDiagnostics(BaseModel):
    configured: bool


class DiagnosticsResponse(BaseModel):
    """Environment and connectivity report. Never contains secrets."""
    environment: str
    version: str
    database: DatabaseDiagnostics
    payments: PaymentDiagnostics
    cors_origins: list[str]
    degraded_mode: bool


# ══════════════════════════════════════════════════════════════════════════
# Errors
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error envelope shared by the exception handlers and the readiness gate.

    Example:
        {
            "error": "service_unavailable",
            "message": "The scholarship database is establishing its connection. ...",
            "details": {"retryable": true, "retry_after": 5},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
