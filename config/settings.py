"""Application settings with validation.

This module implements settings management using Pydantic v2. Settings hold
the default risk posture handed to new risk-management sessions and the
ambient options (logging level, environment).
"""

import sys
from typing import Literal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.exceptions import InvalidSettingsError


class Settings(BaseSettings):
    """Application settings with validation.

    All settings are loaded from environment variables (or ``.env``) and
    validated on construction, so a bad value fails at startup instead of
    inside a sizing calculation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Risk Management Defaults
    DEFAULT_ACCOUNT_BALANCE: float = Field(
        default=10_000.0,
        description="Account balance used when a session starts without one",
    )
    DEFAULT_MAX_RISK_PCT: float = Field(
        default=2.0,
        description="Max % of balance risked per trade",
    )
    DEFAULT_MAX_CONCURRENT_TRADES: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Max number of simultaneously open trades",
    )
    DEFAULT_CORRELATION_LIMIT: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Max tolerated correlation between open positions",
    )
    DEFAULT_DRAWDOWN_LIMIT: float = Field(
        default=20.0,
        description="Max drawdown as % of balance",
    )
    DEFAULT_VOLATILITY_THRESHOLD: float = Field(
        default=0.05,
        description="Volatility threshold (fractional, 0.05 = 5%)",
    )

    # DCA
    DCA_SPACING_PCT: float = Field(
        default=2.0,
        description="Price offset per DCA level, in % of entry",
    )

    # Correlation
    CORRELATION_LOOKBACK: int = Field(
        default=90,
        ge=2,
        le=1000,
        description="Number of return observations used for correlation",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    ENVIRONMENT: Literal["development", "production", "test"] = Field(
        default="development",
        description="Application environment",
    )

    @field_validator(
        "DEFAULT_ACCOUNT_BALANCE",
        "DEFAULT_DRAWDOWN_LIMIT",
        "DEFAULT_VOLATILITY_THRESHOLD",
        "DCA_SPACING_PCT",
    )
    @classmethod
    def validate_positive(cls, v: float, info) -> float:
        """Reject zero or negative values.

        Raises:
            InvalidSettingsError: If value is not > 0
        """
        if v <= 0:
            raise InvalidSettingsError(f"{info.field_name} must be > 0. Got: {v}")
        return v

    @field_validator("DEFAULT_MAX_RISK_PCT")
    @classmethod
    def validate_risk_pct(cls, v: float) -> float:
        """Validate risk percentage range (0, 100].

        Raises:
            InvalidSettingsError: If out of range
        """
        if not 0 < v <= 100:
            raise InvalidSettingsError(
                f"DEFAULT_MAX_RISK_PCT must be in (0, 100]. Got: {v}"
            )
        return v

    @model_validator(mode="after")
    def validate_spacing_fits_ladder(self) -> "Settings":
        """Spacing above 100% would put the first long DCA level at a negative price."""
        if self.DCA_SPACING_PCT >= 100:
            raise InvalidSettingsError(
                f"DCA_SPACING_PCT must be < 100. Got: {self.DCA_SPACING_PCT}"
            )
        return self


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton pattern).

    Returns:
        Settings instance

    Raises:
        SystemExit: If critical configuration error occurs
    """
    global _settings

    if _settings is None:
        try:
            _settings = Settings()
            logger.info(
                f"Settings loaded successfully (environment: {_settings.ENVIRONMENT})"
            )
        except Exception as e:
            logger.critical(f"Failed to load settings: {e}")
            logger.critical("Application cannot start without valid configuration")
            sys.exit(1)

    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None


class SettingsProxy:
    """Lazy proxy for settings to prevent initialization on import."""

    def __getattr__(self, name):
        return getattr(get_settings(), name)


# Global settings instance (lazy)
settings: Settings = SettingsProxy()  # type: ignore
