"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///journal.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    use_null_pool: bool = False  # Short-lived processes (CLI, tests)
    create_tables: bool = True


class AuthConfig(BaseModel):
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 60 * 24 * 7


class CacheConfig(BaseModel):
    enabled: bool = True
    summary_ttl_seconds: float = 30.0
    trend_ttl_seconds: float = 60.0
    static_ttl_seconds: float = 300.0


class InsightConfig(BaseModel):
    recent_trades: int = 20
    week_size: int = 7
    plan_violation_min: int = 2
    mistake_repeat_min: int = 3
    emotional_trades_min: int = 3
    consecutive_losses_min: int = 3
    breakout_min_trades: int = 3
    breakout_edge_pct: float = 20.0
    breakout_r_gap: float = 0.5


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    metrics_enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 3001
    daily_trade_limit: int = 4
    weekly_lookback_weeks: int = 12

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    insights: InsightConfig = Field(default_factory=InsightConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "JOURNAL_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: If the config file is not valid TOML.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigError(f"Invalid config file {path}: {e}") from e

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    return Settings(**data)
