"""Application settings and configuration.

This module defines all configuration options for the ProjectFlow chat service.
Settings are loaded from environment variables (or a ``.env`` file). Secrets
have no defaults: a missing ``SECRET_KEY`` or ``ENCRYPTION_SECRET`` fails at
startup.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="ProjectFlow Chat", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Shared secret for message body encryption
    encryption_secret: str = Field(alias="ENCRYPTION_SECRET", min_length=16)

    # Database configuration
    database_url: str = Field(default="sqlite:///./projectflow.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Chat behaviour
    message_list_limit: int = Field(default=50, ge=1, alias="MESSAGE_LIST_LIMIT")
    message_max_length: int = Field(default=5000, ge=1, alias="MESSAGE_MAX_LENGTH")
    unread_poll_interval_seconds: int = Field(
        default=30,
        ge=1,
        alias="UNREAD_POLL_INTERVAL_SECONDS",
    )
    global_chat_room: str = Field(default="globalChat", alias="GLOBAL_CHAT_ROOM")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
