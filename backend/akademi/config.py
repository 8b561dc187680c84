"""
Akademi Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the connection manager and the payment bridge.
When:  Loaded once at module import time; validated before the app starts.

Recognized variables:
    MONGODB_URI                      full connection string (wins if set)
    DB_USER / DB_PASS                credential parts for the fixed Atlas cluster
    STRIPE_SECRET_KEY / STRIPE_SC_KEY  payment provider secret (either name)
    PORT, HOST                       listening address
    CORS_ORIGINS                     comma-separated allowed origins
    APP_ENV, LOG_LEVEL               environment name and log verbosity
    REQUIRE_DB_ON_STARTUP            fail fast when the first connection fails
    DEGRADED_MODE                    serve the static catalogue on an empty store

Database and collection names are constants (see akademi.database), not settings.
"""

from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


# Fixed Atlas cluster used when only credential parts are supplied
CLUSTER_ADDRESS = "cluster0.wwjbp.mongodb.net"
CLUSTER_QUERY = "retryWrites=true&w=majority&appName=Cluster0"

DEFAULT_CORS_ORIGINS = ",".join([
    "http://localhost:5173",
    "https://akademi-scholarship-management-syst-one.vercel.app",
    "https://scholarship-management-sys.vercel.app",
])


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Secrets (MONGODB_URI, DB_PASS,
    STRIPE_SECRET_KEY) have no default and are never echoed by /diag.
    """

    # ── Database ──────────────────────────────────────────────────────────
    mongodb_uri: Optional[str] = Field(default=None, description="Full MongoDB connection string")
    db_user: Optional[str] = Field(default=None)
    db_pass: Optional[str] = Field(default=None)

    # Client bounds, in milliseconds
    db_connect_timeout_ms: int = Field(default=10_000, ge=500, le=120_000)
    db_socket_timeout_ms: int = Field(default=45_000, ge=1_000, le=600_000)
    db_server_selection_timeout_ms: int = Field(default=10_000, ge=500, le=120_000)
    db_max_pool_size: int = Field(default=10, ge=1, le=500)

    # Long-running deployments may prefer to crash at startup rather than
    # answer 503 until the store comes up.
    require_db_on_startup: bool = Field(default=False)

    # Serve akademi.fallback when the Scholarships collection is empty
    degraded_mode: bool = Field(default=False)

    # ── Payments ──────────────────────────────────────────────────────────
    stripe_secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("STRIPE_SECRET_KEY", "STRIPE_SC_KEY"),
    )

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default=DEFAULT_CORS_ORIGINS)

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    app_env: str = Field(default="development")

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    # ── Derived values ────────────────────────────────────────────────────
    @property
    def connection_source(self) -> str:
        """Where the connection string comes from: 'uri', 'credentials' or 'missing'."""
        if self.mongodb_uri:
            return "uri"
        if self.db_user and self.db_pass:
            return "credentials"
        return "missing"

    @property
    def mongo_uri(self) -> Optional[str]:
        """
        The connection string the store should use, or None when unconfigured.

        Credential parts are URL-quoted before being combined with the fixed
        cluster address.
        """
        if self.mongodb_uri:
            return self.mongodb_uri
        if self.db_user and self.db_pass:
            return (
                f"mongodb+srv://{quote_plus(self.db_user)}:{quote_plus(self.db_pass)}"
                f"@{CLUSTER_ADDRESS}/?{CLUSTER_QUERY}"
            )
        return None

    @property
    def payments_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    def validate_required_for_production(self) -> None:
        """
        Checks that the store and payment provider are configured.

        Raises ValueError listing every missing setting. Called from the
        lifespan, which logs the problem and keeps serving probes.
        """
        errors = []
        if self.connection_source == "missing":
            errors.append("MONGODB_URI (or DB_USER and DB_PASS) is not set.")
        if not self.payments_configured:
            errors.append("STRIPE_SECRET_KEY (or STRIPE_SC_KEY) is not set.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance used by the default application
settings = Settings()
