"""Tests for configuration classes."""

import os
from dataclasses import FrozenInstanceError
from unittest.mock import patch

import pytest

from config import (
    AppConfig,
    CORSConfig,
    PersistenceConfig,
    RateLimitConfig,
    SecurityConfig,
    TableDefaults,
    _parse_cors_origins,
)


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        """Test that default CORS origins are set correctly."""
        with patch.dict(os.environ, {}, clear=True):
            config = CORSConfig()

            assert config.allowed_origins == ["http://localhost:8000"]

    def test_cors_parses_env_var(self):
        """Test that CORS origins are parsed from environment variable."""
        env_origins = "http://example.com,http://localhost:3000,http://app.test.com"
        with patch.dict(os.environ, {"CORS_ORIGINS": env_origins}):
            origins = _parse_cors_origins()

            assert origins == ["http://example.com", "http://localhost:3000", "http://app.test.com"]

    def test_cors_parses_origins_with_whitespace(self):
        """Whitespace and empty entries are dropped."""
        with patch.dict(os.environ, {"CORS_ORIGINS": "  http://example.com  , ,http://localhost:3000 "}):
            assert _parse_cors_origins() == ["http://example.com", "http://localhost:3000"]

    def test_cors_defaults_allow_all(self):
        """Credentials, methods and headers are open by default."""
        config = CORSConfig()

        assert config.allow_credentials is True
        assert config.allow_methods == ["*"]
        assert config.allow_headers == ["*"]


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        """Test default rate limit values."""
        with patch.dict(os.environ, {}, clear=True):
            config = RateLimitConfig()

            assert config.enabled is True
            assert config.requests_per_minute == 60

    def test_rate_limit_from_env(self):
        """Test rate limit configuration from environment."""
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "false", "RATE_LIMIT_RPM": "120"}):
            config = RateLimitConfig()

            assert config.enabled is False
            assert config.requests_per_minute == 120

    @pytest.mark.parametrize("value", ["FALSE", "0", "no", ""])
    def test_only_true_enables(self, value):
        """Anything but "true" (any case) disables limiting."""
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": value}):
            assert RateLimitConfig().enabled is False

        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "True"}):
            assert RateLimitConfig().enabled is True


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_secret_key_auto_generates(self):
        """A random key is generated when SECRET_KEY is unset."""
        with patch.dict(os.environ, {}, clear=True):
            first = SecurityConfig()
            second = SecurityConfig()

            assert first.secret_key
            assert first.secret_key != second.secret_key

    def test_secret_key_from_env(self):
        """Test that secret key is read from environment."""
        with patch.dict(os.environ, {"SECRET_KEY": "my-super-secret-key-12345"}):
            assert SecurityConfig().secret_key == "my-super-secret-key-12345"


class TestPersistenceConfig:
    """Tests for PersistenceConfig class."""

    def test_defaults(self):
        """In-memory store with one-day expiry and lockout."""
        with patch.dict(os.environ, {}, clear=True):
            config = PersistenceConfig()

            assert config.store_path is None
            assert config.coins_ttl_seconds == 86400
            assert config.lockout_seconds == 86400

    def test_store_path_from_env(self):
        """STORE_PATH selects a JSON file."""
        with patch.dict(os.environ, {"STORE_PATH": "/tmp/blackjack.json"}):
            assert PersistenceConfig().store_path == "/tmp/blackjack.json"

    def test_empty_store_path_is_none(self):
        """An empty STORE_PATH means in-memory."""
        with patch.dict(os.environ, {"STORE_PATH": ""}):
            assert PersistenceConfig().store_path is None


class TestTableDefaults:
    """Tests for TableDefaults class."""

    def test_defaults(self):
        """One second between AI and dealer steps, 1.5 for a reshuffle."""
        with patch.dict(os.environ, {}, clear=True):
            defaults = TableDefaults()

            assert defaults.ai_delay == 1.0
            assert defaults.dealer_delay == 1.0
            assert defaults.reshuffle_delay == 1.5
            assert defaults.replay_history == 20

    def test_delays_from_env(self):
        """Pacing can be tuned (or zeroed) from the environment."""
        with patch.dict(
            os.environ,
            {"AI_DELAY_SECONDS": "0", "DEALER_DELAY_SECONDS": "0.25", "RESHUFFLE_DELAY_SECONDS": "2"},
        ):
            defaults = TableDefaults()

            assert defaults.ai_delay == 0.0
            assert defaults.dealer_delay == 0.25
            assert defaults.reshuffle_delay == 2.0

    def test_frozen(self):
        """Defaults cannot be changed after creation."""
        with pytest.raises(FrozenInstanceError):
            TableDefaults().ai_delay = 5.0


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_defaults(self):
        """Test default AppConfig values."""
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()

            assert config.debug is False
            assert config.host == "0.0.0.0"
            assert config.port == 8000
            assert config.log_level == "INFO"
            assert config.session_ttl == 3600

    def test_app_config_from_env(self):
        """Debug mode and log level come from the environment."""
        with patch.dict(os.environ, {"DEBUG": "true", "LOG_LEVEL": "debug"}):
            config = AppConfig()

            assert config.debug is True
            assert config.log_level == "DEBUG"

    def test_app_config_has_nested_configs(self):
        """Test that AppConfig has nested configuration objects."""
        config = AppConfig()

        assert isinstance(config.table, TableDefaults)
        assert isinstance(config.persistence, PersistenceConfig)
        assert isinstance(config.cors, CORSConfig)
        assert isinstance(config.rate_limit, RateLimitConfig)
        assert isinstance(config.security, SecurityConfig)
