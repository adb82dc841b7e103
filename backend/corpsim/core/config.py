"""
config.py — Centralized Engine Configuration Loader

Purpose:
- Define a single source of truth for engine settings.
- Load and validate environment variables from `.env` or OS environment.
- Keep every tunable economy constant (action allotment, CEO stipend,
  cooldowns, boosts, dividend thresholds, valuation weights) swappable
  without code changes.

This module does NOT:
- Open database connections.
- Read the runtime `cron_enabled` flag (that lives in the store and is read
  fresh at the start of every job invocation).
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/corpsim/core/config.py
# .env should be at: backend/.env
_CONFIG_DIR = Path(__file__).parent  # backend/corpsim/core
_BACKEND_DIR = _CONFIG_DIR.parent.parent  # backend
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    _ENV_FILE_PATH = str(_ENV_FILE.resolve())
else:
    # Fallback: pydantic will look in CWD
    _ENV_FILE_PATH = ".env"

SALARY_MODES = ("fixed", "capital_fraction")


class Settings(BaseSettings):
    """
    Engine settings container.

    Every economy constant the turn jobs use is read from here so that
    operators can retune a running game through the environment.
    """

    # Persistence
    DATABASE_URL: str = Field(
        "sqlite:///./corpsim.db",
        description="SQLAlchemy URL for the economy store (postgresql:// is normalized to psycopg)",
    )

    # Trigger boundary
    CRON_SECRET: str = Field(
        "",
        description="Shared secret expected as the trigger credential; empty rejects every trigger",
    )

    LOG_LEVEL: str = Field("INFO", description="Root log level")

    # Actions increment
    ACTIONS_PER_PERIOD: int = Field(
        2,
        description="Action points granted to every user per actions-increment run",
    )
    CEO_BONUS_ACTIONS: int = Field(
        1,
        description="Extra action points granted to users who are CEO of any corporation",
    )

    # CEO salaries
    CEO_SALARY_MODE: str = Field(
        "fixed",
        description="'fixed' pays CEO_SALARY_AMOUNT, 'capital_fraction' pays capital * CEO_SALARY_CAPITAL_FRACTION",
    )
    CEO_SALARY_AMOUNT: float = Field(
        100_000.0,
        description="Stipend per salary period in fixed mode",
    )
    CEO_SALARY_CAPITAL_FRACTION: float = Field(
        0.01,
        description="Fraction of corporation capital paid per period in capital_fraction mode",
    )
    SALARY_COOLDOWN_SECONDS: int = Field(
        96 * 3600,
        description="Minimum seconds between two salary payments to the same CEO",
    )

    # Market revenue
    MARKET_BOOST_PER_ACTION: float = Field(
        0.10,
        description="Revenue boost per active supply_rush / marketing_campaign action (0.10 = +10%)",
    )

    # Dividends
    DIVIDEND_MIN_CAPITAL: float = Field(
        100_000.0,
        description="Corporations below this capital skip the daily dividend",
    )
    MIN_DIVIDEND_PER_SHARE: float = Field(
        0.01,
        description="Dividends smaller than this per share are not paid",
    )
    SPECIAL_DIVIDEND_COOLDOWN_SECONDS: int = Field(
        96 * 3600,
        description="Minimum seconds between two special dividends of one corporation",
    )

    # Valuation
    MIN_SHARE_PRICE: float = Field(0.01, description="Share price floor")
    VALUATION_BOOK_WEIGHT: float = Field(0.6, description="Weight of book value per share")
    VALUATION_EARNINGS_WEIGHT: float = Field(0.4, description="Weight of earnings value per share")
    EARNINGS_MULTIPLE: float = Field(
        24.0,
        description="Multiple applied to the last period's profit for the earnings component",
    )

    # Price history
    PRICE_HISTORY_BUCKET_SECONDS: int = Field(
        3600,
        description="Width of a price-history bucket; recording twice in one bucket overwrites",
    )

    @field_validator("CRON_SECRET", mode="before")
    @classmethod
    def strip_secret(cls, v: Any) -> str:
        """Strip whitespace from the shared secret."""
        if isinstance(v, str):
            return v.strip()
        return v or ""

    @field_validator("CEO_SALARY_MODE")
    @classmethod
    def check_salary_mode(cls, v: str) -> str:
        if v not in SALARY_MODES:
            raise ValueError(f"CEO_SALARY_MODE must be one of {SALARY_MODES}, got {v!r}")
        return v

    @field_validator(
        "ACTIONS_PER_PERIOD",
        "CEO_BONUS_ACTIONS",
        "CEO_SALARY_AMOUNT",
        "CEO_SALARY_CAPITAL_FRACTION",
        "SALARY_COOLDOWN_SECONDS",
        "EARNINGS_MULTIPLE",
        "MARKET_BOOST_PER_ACTION",
        "DIVIDEND_MIN_CAPITAL",
        "MIN_DIVIDEND_PER_SHARE",
        "SPECIAL_DIVIDEND_COOLDOWN_SECONDS",
    )
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @model_validator(mode="after")
    def check_positive_floors(self) -> "Settings":
        if self.MIN_SHARE_PRICE <= 0:
            raise ValueError("MIN_SHARE_PRICE must be > 0")
        if self.PRICE_HISTORY_BUCKET_SECONDS <= 0:
            raise ValueError("PRICE_HISTORY_BUCKET_SECONDS must be > 0")
        return self

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Singleton pattern — settings imported anywhere will reference same object.
settings = Settings()
