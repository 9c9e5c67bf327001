"""Application configuration using pydantic-settings."""
import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")

    # Redis - account, channel and server member caches
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")

    # Tokens - HMAC secret shared by every instance
    jwt_secret: str = Field(validation_alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # Maximum number of channels a single server may hold
    server_channel_limit: int = Field(default=100, validation_alias="SERVER_CHANNEL_LIMIT")

    # Logging and process identity (labels only, never used for coordination)
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    is_primary_instance: bool = Field(default=True, validation_alias="PRIMARY_INSTANCE")
    instance_id: str | None = Field(default=None, validation_alias="INSTANCE_ID")

    @field_validator("server_channel_limit")
    @classmethod
    def validate_channel_limit(cls, value: int) -> int:
        """Channel limit must allow at least one channel."""
        if value < 1:
            raise ValueError("SERVER_CHANNEL_LIMIT must be at least 1")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept log levels in any case."""
        return value.upper()

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def process_label(self) -> str:
        """Label identifying this process in log output."""
        if self.instance_id:
            return self.instance_id
        return "Main" if self.is_primary_instance else f"PID {os.getpid()}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
