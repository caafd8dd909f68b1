"""Application settings and configuration."""

from functools import lru_cache
from typing import ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Elucidario API", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8000, description="Port to bind to")
    log_level: str = Field(default="INFO", description="Root log level")

    # HTTP surface
    api_prefix: str = Field(default="api", description="Path prefix for the REST API")
    api_version: str = Field(default="v1", description="REST API version segment")

    # CORS
    allowed_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        description="Allowed CORS origins",
    )

    # Security
    secret_key: str = Field(
        default="your-secret-key-change-in-production",
        description="Secret key for JWT tokens",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(
        default=30, description="Access token expiration time in minutes"
    )

    # PostgreSQL / Apache AGE
    postgres_user: str = Field(default="admin", description="PostgreSQL user")
    postgres_password: str = Field(
        default="supersecretpassword", description="PostgreSQL password"
    )
    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_port: int = Field(default=5432, description="PostgreSQL port")
    postgres_db: str = Field(default="elucidario", description="PostgreSQL database name")
    test_postgres_db: str = Field(
        default="elucidario_test", description="PostgreSQL test database name"
    )
    graph_name: str = Field(default="elucidario", description="AGE graph name")
    test_graph_name: str = Field(
        default="elucidario_test", description="AGE graph name used by the test suite"
    )
    pool_min_size: int = Field(default=2, description="Minimum pooled connections")
    pool_max_size: int = Field(default=10, description="Maximum pooled connections")
    command_timeout: float | None = Field(
        default=30.0,
        description="Per-statement timeout in seconds enforced by the driver",
    )

    @property
    def active_database(self) -> str:
        """Database name for the current mode."""
        return self.test_postgres_db if self.testing else self.postgres_db

    @property
    def active_graph(self) -> str:
        """AGE graph name for the current mode."""
        return self.test_graph_name if self.testing else self.graph_name


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
