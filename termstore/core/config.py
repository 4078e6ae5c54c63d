"""
Centralized configuration for the termstore client

Provides pydantic-based configuration with:
- Environment variable loading (.env support)
- Type validation
- Default values

Usage:
    from termstore.core.config import get_config

    config = get_config()
    print(config.base_url)
    print(config.request_timeout)
"""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from termstore.core.paths import is_absolute_url


class TermStoreConfig(BaseSettings):
    """
    Central configuration for the termstore client

    All settings can be overridden via environment variables with the
    TERMSTORE_ prefix. For example: TERMSTORE_BASE_URL, TERMSTORE_MAX_RETRIES.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TERMSTORE_",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # Endpoint Configuration
    # ============================================

    base_url: Optional[str] = Field(
        default=None,
        description="Absolute URL of the site hosting the term store"
    )

    termstore_path: str = Field(
        default="_api/v2.1/termstore",
        description="Path of the term store endpoint below base_url"
    )

    # ============================================
    # Transport Configuration
    # ============================================

    request_timeout: float = Field(
        default=30.0,
        description="Per-request deadline in seconds"
    )

    max_retries: int = Field(
        default=3,
        description="Retries for transient failures when retrying transport is used"
    )

    retry_base_delay: float = Field(
        default=0.5,
        description="Base delay in seconds for exponential backoff"
    )

    proxy_url: Optional[str] = Field(
        default=None,
        description="Proxy URL applied to every request"
    )

    user_agent: str = Field(
        default="termstore-python",
        description="User-Agent header value"
    )

    accept: str = Field(
        default="application/json",
        description="Accept header value"
    )

    # ============================================
    # Application Configuration
    # ============================================

    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    # ============================================
    # Validators
    # ============================================

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        """Base URL must be absolute when set"""
        if v is not None and not is_absolute_url(v):
            raise ValueError("base_url must be an absolute http(s) URL")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(
                f"log_level must be one of: {', '.join(valid_levels)}"
            )
        return v.upper()

    @field_validator("request_timeout", "retry_base_delay")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v):
        if v < 0:
            raise ValueError("max_retries cannot be negative")
        return v


# Global config instance
_config: Optional[TermStoreConfig] = None


def get_config(force_reload: bool = False) -> TermStoreConfig:
    """
    Get the global configuration instance

    Args:
        force_reload: Force reload configuration from environment

    Returns:
        TermStoreConfig instance
    """
    global _config

    if _config is None or force_reload:
        _config = TermStoreConfig()

    return _config


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for command line use.

    Args:
        level: Logging level name; defaults to the configured log_level
    """
    logging.basicConfig(
        level=getattr(logging, (level or get_config().log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
