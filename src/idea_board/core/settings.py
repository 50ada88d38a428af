"""Application settings and configuration.

This module defines all configuration options for the Idea Board service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Idea Board", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Verification of bearer tokens issued by the account service
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Database configuration
    database_url: str = Field(default="sqlite:///./idea_board.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Session summary cache; in-process when no Redis URL is configured
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    session_cache_ttl_seconds: int = Field(default=300, alias="SESSION_CACHE_TTL_SECONDS")

    # Anonymous identity
    session_cookie_name: str = Field(default="idea_session", alias="SESSION_COOKIE_NAME")
    session_header_name: str = Field(default="X-Session-Id", alias="SESSION_HEADER_NAME")
    session_cookie_max_age_seconds: int = Field(
        default=60 * 60 * 24 * 365,
        alias="SESSION_COOKIE_MAX_AGE_SECONDS",
    )
    session_idle_threshold_seconds: int = Field(
        default=30 * 60,
        alias="SESSION_IDLE_THRESHOLD_SECONDS",
    )
    # X-Forwarded-For is honoured only when the direct peer is one of these proxies
    trust_forwarded_for: bool = Field(default=False, alias="TRUST_FORWARDED_FOR")
    forwarded_allow_ips: list[str] = Field(
        default=["127.0.0.1", "::1"],
        alias="FORWARDED_ALLOW_IPS",
    )

    # Reputation
    reward_upvote_threshold: int = Field(default=5, ge=1, alias="REWARD_UPVOTE_THRESHOLD")
    vote_requires_submission: bool = Field(default=False, alias="VOTE_REQUIRES_SUBMISSION")

    # Address-based vote stuffing detection
    abuse_window_seconds: int = Field(default=60, alias="ABUSE_WINDOW_SECONDS")
    abuse_vote_threshold: int = Field(default=3, ge=1, alias="ABUSE_VOTE_THRESHOLD")
    abuse_policy: Literal["reject", "flag"] = Field(default="reject", alias="ABUSE_POLICY")
    trusted_addresses: list[str] = Field(
        default=["127.0.0.1", "::1", "::ffff:127.0.0.1"],
        alias="TRUSTED_ADDRESSES",
    )

    # Bounded retries for benign uniqueness races on the vote ledger
    vote_conflict_retries: int = Field(default=3, ge=1, alias="VOTE_CONFLICT_RETRIES")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
