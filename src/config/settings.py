"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a Redis server.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "JogGPS Coaching API"
    api_version: str = "1.0.0"

    # Anthropic Configuration
    anthropic_api_key: str = Field(
        default="",
        description="Claude API key. Without it every request gets a fallback message."
    )
    anthropic_model: str = Field(
        default="claude-3-5-haiku-20241022",
        description="Default model when the app doesn't pick one."
    )
    anthropic_temperature: float = Field(
        default=0.8,
        description="Slightly creative so repeated messages don't sound identical."
    )
    anthropic_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound on one generation call. Past this we fall back."
    )
    anthropic_max_retries: int = Field(
        default=0,
        description="SDK-level retries. Retries still have to fit inside the timeout."
    )

    # Redis Configuration
    redis_url: Optional[str] = Field(
        default=None,
        description="Full Redis URL (redis:// or rediss://). Overrides host/port/db."
    )
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis logical database")
    redis_password: Optional[str] = Field(default=None, description="Redis password")
    redis_socket_timeout: float = Field(
        default=2.0,
        description="Seconds before a Redis call is abandoned and treated as a cache outage."
    )
    redis_mock_mode: bool = Field(
        default=False,
        description="Use in-memory store instead of Redis. Enables local dev without a server."
    )

    # Cache and Retention
    coaching_cache_ttl_seconds: int = Field(
        default=300,
        description="Store-level expiry for cached messages. Must exceed the 60s freshness window."
    )
    profile_ttl_days: int = Field(default=30, description="Profile expiry after last update")
    run_history_ttl_days: int = Field(default=365, description="Run record expiry")
    recent_runs_limit: int = Field(default=50, description="Runs kept in a device's recent list")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level. Case-insensitive in the environment."
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set.

        Returns list of missing required fields. Redis has usable
        defaults, so only the Anthropic key can be missing.
        """
        missing = []

        if not self.anthropic_api_key:
            missing.append("ANTHROPIC_API_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
