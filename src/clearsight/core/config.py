#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for all application configuration,
including environment variables, defaults, and validation.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict

from .env_loader import load_env_file
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DISPATCH_POLICIES = ('fanout', 'trickle')


@dataclass
class DatabaseConfig:
    """Database connection configuration."""
    database_url: Optional[str] = None
    connection_timeout: int = 30

    @property
    def is_memory(self) -> bool:
        return not self.database_url


@dataclass
class IntegrationConfig:
    """External integration configuration."""
    groq_api_key: Optional[str] = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    sentiment_model: str = "llama-3.1-8b-instant"
    rhetoric_model: str = "llama-3.3-70b-versatile"
    comparison_model: str = "llama-3.3-70b-versatile"
    news_api_key: Optional[str] = None
    news_api_timeout: int = 15


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    # Dispatch settings
    dispatch_policy: str = "fanout"
    max_concurrent_analyses: int = 5
    analysis_timeout_seconds: float = 30.0
    trickle_interval_ms: int = 300

    # Scoring client settings
    analysis_max_chars: int = 4000
    analysis_max_attempts: int = 3
    analysis_max_tokens: int = 1024
    analysis_retry_delay: float = 0.5

    # Retention
    retention_days: int = 30

    # Logging
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    integrations: IntegrationConfig = field(default_factory=IntegrationConfig)
    app: ApplicationConfig = field(default_factory=ApplicationConfig)

    def has_groq(self) -> bool:
        """Check if the scoring service is configured."""
        return bool(self.integrations.groq_api_key)

    def has_news_api(self) -> bool:
        """Check if the news source is configured."""
        return bool(self.integrations.news_api_key)

    def integration_status(self) -> Dict[str, bool]:
        """Which external services are configured."""
        return {
            'groq': self.has_groq(),
            'news_api': self.has_news_api(),
            'postgres': not self.database.is_memory
        }


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self, env_file_path: str = ".env", load_env: bool = True):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to .env file relative to project root
            load_env: Whether to read the .env file at all
        """
        self._config: Optional[Config] = None
        if load_env:
            load_env_file(env_file_path)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""
        database_config = DatabaseConfig(
            database_url=os.getenv('DATABASE_URL') or None,
            connection_timeout=self._get_int('DB_CONNECTION_TIMEOUT', 30)
        )

        integration_config = IntegrationConfig(
            groq_api_key=os.getenv('GROQ_API_KEY'),
            groq_base_url=os.getenv('GROQ_BASE_URL', 'https://api.groq.com/openai/v1'),
            sentiment_model=os.getenv('GROQ_SENTIMENT_MODEL', 'llama-3.1-8b-instant'),
            rhetoric_model=os.getenv('GROQ_RHETORIC_MODEL', 'llama-3.3-70b-versatile'),
            comparison_model=os.getenv('GROQ_COMPARISON_MODEL', 'llama-3.3-70b-versatile'),
            news_api_key=os.getenv('NEWS_API_KEY'),
            news_api_timeout=self._get_int('NEWS_API_TIMEOUT', 15)
        )

        app_config = ApplicationConfig(
            dispatch_policy=os.getenv('DISPATCH_POLICY', 'fanout').lower(),
            max_concurrent_analyses=self._get_int('MAX_CONCURRENT_ANALYSES', 5),
            analysis_timeout_seconds=self._get_float('ANALYSIS_TIMEOUT', 30.0),
            trickle_interval_ms=self._get_int('TRICKLE_INTERVAL_MS', 300),
            analysis_max_chars=self._get_int('ANALYSIS_MAX_CHARS', 4000),
            analysis_max_attempts=self._get_int('ANALYSIS_MAX_ATTEMPTS', 3),
            analysis_max_tokens=self._get_int('ANALYSIS_MAX_TOKENS', 1024),
            analysis_retry_delay=self._get_float('ANALYSIS_RETRY_DELAY', 0.5),
            retention_days=self._get_int('RETENTION_DAYS', 30),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=os.getenv('VERBOSE_LOGGING', 'false').lower() == 'true'
        )

        config = Config(
            database=database_config,
            integrations=integration_config,
            app=app_config
        )

        self._validate_config(config)
        return config

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        raw = os.getenv(key)
        if raw is None or raw == '':
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(key, f"expected an integer, got {raw!r}")

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        raw = os.getenv(key)
        if raw is None or raw == '':
            return default
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(key, f"expected a number, got {raw!r}")

    def _validate_config(self, config: Config) -> None:
        """Validate configuration values."""
        errors = []

        url = config.database.database_url
        if url and not url.startswith(('postgresql://', 'postgres://')):
            errors.append("DATABASE_URL must start with postgresql:// or postgres://")

        if config.app.dispatch_policy not in DISPATCH_POLICIES:
            errors.append(f"DISPATCH_POLICY must be one of: {', '.join(DISPATCH_POLICIES)}")

        if config.app.max_concurrent_analyses < 1 or config.app.max_concurrent_analyses > 50:
            errors.append("MAX_CONCURRENT_ANALYSES must be between 1 and 50")

        if config.app.analysis_timeout_seconds <= 0:
            errors.append("ANALYSIS_TIMEOUT must be positive")

        if config.app.trickle_interval_ms < 0:
            errors.append("TRICKLE_INTERVAL_MS cannot be negative")

        if config.app.analysis_max_chars < 100:
            errors.append("ANALYSIS_MAX_CHARS must be at least 100")

        if config.app.analysis_max_attempts < 1:
            errors.append("ANALYSIS_MAX_ATTEMPTS must be at least 1")

        if config.app.retention_days < 1:
            errors.append("RETENTION_DAYS must be at least 1")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ConfigurationError('environment', '; '.join(errors))

        logger.debug("Configuration validation passed")

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.app.log_level)
        root = logging.getLogger()
        root.setLevel(numeric_level)

        if config.app.verbose_logging:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        if not root.handlers:
            logging.basicConfig(level=numeric_level)

        for handler in root.handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S'))


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()


def reset_config() -> None:
    """Reset configuration manager (useful for testing)."""
    global _config_manager
    _config_manager = None
