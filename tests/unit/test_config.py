"""Tests for configuration management."""

import os
import pytest
from unittest.mock import patch

from insightvault.core.config import (
    DEFAULT_SECRET_KEY,
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    SecurityConfig,
    Settings,
)


class TestAppConfig:
    """Test application configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        """Test default configuration values."""
        config = AppConfig()

        assert config.name == "InsightVault"
        assert config.version == "0.1.0"
        assert config.debug is False
        assert config.environment == "development"
        assert config.host == "0.0.0.0"
        assert config.port == 8000
        assert config.workers == 1

    def test_environment_validation(self):
        """Test environment validation."""
        for env in ["development", "staging", "production", "test"]:
            config = AppConfig(environment=env)
            assert config.environment == env

        with pytest.raises(ValueError):
            AppConfig(environment="invalid")

    @patch.dict(os.environ, {"INSIGHTVAULT_DEBUG": "true", "INSIGHTVAULT_PORT": "9000"})
    def test_env_override(self):
        """Test environment variable override."""
        config = AppConfig()
        assert config.debug is True
        assert config.port == 9000


class TestDatabaseConfig:
    """Test database configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        config = DatabaseConfig()

        assert config.url == "mongodb://localhost:27017"
        assert config.name == "insightvault"
        assert config.server_selection_timeout_ms == 5000
        assert config.max_pool_size == 10

    @patch.dict(os.environ, {"INSIGHTVAULT_DB_URL": "mongodb://db:27017", "INSIGHTVAULT_DB_NAME": "vault"})
    def test_env_override(self):
        config = DatabaseConfig()
        assert config.url == "mongodb://db:27017"
        assert config.name == "vault"


class TestSecurityConfig:
    """Test security configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        config = SecurityConfig()

        assert config.secret_key == DEFAULT_SECRET_KEY
        assert config.algorithm == "HS256"
        assert config.access_token_expire_minutes == 7 * 24 * 60
        assert config.bcrypt_rounds == 12
        assert config.require_password_for_account_deletion is True

    def test_algorithm_validation(self):
        for algorithm in ["HS256", "HS384", "HS512"]:
            assert SecurityConfig(algorithm=algorithm).algorithm == algorithm

        with pytest.raises(ValueError):
            SecurityConfig(algorithm="RS256")

    def test_bcrypt_rounds_validation(self):
        assert SecurityConfig(bcrypt_rounds=4).bcrypt_rounds == 4

        with pytest.raises(ValueError):
            SecurityConfig(bcrypt_rounds=3)
        with pytest.raises(ValueError):
            SecurityConfig(bcrypt_rounds=32)

    @patch.dict(os.environ, {"INSIGHTVAULT_SECURITY_SECRET_KEY": "from-env"})
    def test_env_override(self):
        assert SecurityConfig().secret_key == "from-env"


class TestLoggingConfig:
    """Test logging configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.file is None
        assert config.backup_count == 5


class TestSettings:
    """Test main settings class."""

    def test_sections_present(self):
        settings = Settings()

        assert isinstance(settings.app, AppConfig)
        assert isinstance(settings.database, DatabaseConfig)
        assert isinstance(settings.security, SecurityConfig)
        assert isinstance(settings.logging, LoggingConfig)

    def test_environment_helpers(self):
        dev = Settings(app=AppConfig(environment="development"))
        assert dev.is_development() is True
        assert dev.is_production() is False

        prod = Settings(
            app=AppConfig(environment="production"),
            security=SecurityConfig(secret_key="a-real-secret"),
        )
        assert prod.is_production() is True
        assert prod.is_development() is False

    def test_production_requires_secret_key(self):
        """Production refuses the shipped default signing key."""
        with pytest.raises(ValueError, match="SECRET_KEY"):
            Settings(
                app=AppConfig(environment="production"),
                security=SecurityConfig(secret_key=DEFAULT_SECRET_KEY),
            )
