"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from monitor.models import EXCHANGE_PRIORITY, ExchangeId


class SourceSettings(BaseSettings):
    """Exchange source selection and polling cadence."""

    model_config = SettingsConfigDict(env_prefix="SOURCES_")

    enabled: set[ExchangeId] = set(EXCHANGE_PRIORITY)
    request_timeout: float = 10.0

    # Poll intervals in seconds
    lighter_interval: float = 5 * 60
    binance_interval: float = 5 * 60
    aster_interval: float = 5 * 60
    edgex_interval: float = 10 * 60
    grvt_interval: float = 10 * 60
    metadata_interval: float = 60 * 60

    fetch_gap: float = 0.5  # seconds between sequential per-contract requests
    lighter_native_interval_hours: float = 8  # 1 for an hourly-funded feed


class BoardSettings(BaseSettings):
    """Join policy and display configuration for the funding board."""

    model_config = SettingsConfigDict(env_prefix="BOARD_")

    min_sources: int = 2
    required_exchanges: set[ExchangeId] = set()
    display_limit: int = 25
    top_spread_limit: int = 10
    snapshot_path: str = "data/funding_snapshot.json"
    render_interval: float = 1.0


class HistorySettings(BaseSettings):
    """Lighter funding history view configuration.

    Controls the lookback window, request pacing and exclusions.
    All fields configurable via HISTORY_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="HISTORY_")

    lookback_days: int = 7
    count_back: int = 168  # hourly points in 7 days
    resolution: str = "1h"
    fetch_gap: float = 1.0  # 60 requests/minute guidance
    refresh_interval: float = 30 * 60
    excluded_symbols: set[str] = set()
    principal_usd: float = 1000.0
    display_limit: int = 30
    snapshot_path: str = "data/lighter_history_snapshot.json"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    sources: SourceSettings = SourceSettings()
    board: BoardSettings = BoardSettings()
    history: HistorySettings = HistorySettings()
