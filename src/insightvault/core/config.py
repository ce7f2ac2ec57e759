"""Configuration management for InsightVault."""

from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "insightvault-secret-key-change-this-in-production"


class DatabaseConfig(BaseSettings):
    """MongoDB connection configuration."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTVAULT_DB_")

    url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string"
    )
    name: str = Field(default="insightvault", description="Database name")
    server_selection_timeout_ms: int = Field(
        default=5000, description="Server selection timeout in milliseconds"
    )
    max_pool_size: int = Field(default=10, description="Maximum pooled connections")
    min_pool_size: int = Field(default=1, description="Minimum pooled connections")


class SecurityConfig(BaseSettings):
    """Token signing and password hashing configuration."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTVAULT_SECURITY_")

    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Secret key for signing bearer tokens"
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7, description="Access token lifetime in minutes"
    )
    bcrypt_rounds: int = Field(default=12, description="bcrypt work factor")
    require_password_for_account_deletion: bool = Field(
        default=True,
        description="Require the account password before deleting an account"
    )

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Only symmetric HMAC algorithms are supported."""
        allowed = ["HS256", "HS384", "HS512"]
        if v not in allowed:
            raise ValueError(f"Algorithm must be one of {allowed}")
        return v

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        """bcrypt accepts work factors between 4 and 31."""
        if not 4 <= v <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return v


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTVAULT_")

    name: str = Field(default="InsightVault", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8000, description="Port to bind to")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed outside development"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production", "test"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTVAULT_LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )
    file: Optional[str] = Field(default=None, description="Log file path")
    max_file_size: int = Field(default=10 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=5, description="Number of backup log files")


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def check_production_secret(self) -> "Settings":
        """Refuse to run production with the shipped signing key."""
        if self.app.environment == "production" and self.security.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError("INSIGHTVAULT_SECURITY_SECRET_KEY must be set in production")
        return self

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app.environment == "production"


# Global settings instance
settings = Settings()
