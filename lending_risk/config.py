"""Configuration loader. Reads config.yaml, interpolates env vars and validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskConfig:
    bollinger_window: int = 20
    bollinger_multiplier: float = 2.0
    safety_multiplier: float = 1.2
    scenario_timeout_seconds: float | None = None


@dataclass(frozen=True)
class IngestionConfig:
    schedule_hour_utc: int = 3
    schedule_minute_utc: int = 0
    asset_delay_ms: int = 500
    price_window_days: int = 2
    vs_currency: str = "usd"


@dataclass(frozen=True)
class CoinGeckoConfig:
    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: str = ""
    cache_ttl_hours: float = 24.0
    request_timeout: int = 30


@dataclass(frozen=True)
class SeriesStoreConfig:
    url: str = "http://localhost:9000"
    table: str = "ohlc_prices"
    request_timeout: int = 30


@dataclass(frozen=True)
class RegisteredMarketConfig:
    chain: str = ""
    rpc_endpoint: str = ""


@dataclass(frozen=True)
class AppConfig:
    risk: RiskConfig = field(default_factory=RiskConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    coingecko: CoinGeckoConfig = field(default_factory=CoinGeckoConfig)
    series_store: SeriesStoreConfig = field(default_factory=SeriesStoreConfig)
    markets: tuple[RegisteredMarketConfig, ...] = ()


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_risk(raw: dict[str, Any]) -> RiskConfig:
    timeout = raw.get("scenario_timeout_seconds")
    return RiskConfig(
        bollinger_window=int(raw.get("bollinger_window", 20)),
        bollinger_multiplier=float(raw.get("bollinger_multiplier", 2.0)),
        safety_multiplier=float(raw.get("safety_multiplier", 1.2)),
        scenario_timeout_seconds=float(timeout) if timeout not in (None, "") else None,
    )


def _build_ingestion(raw: dict[str, Any]) -> IngestionConfig:
    return IngestionConfig(
        schedule_hour_utc=int(raw.get("schedule_hour_utc", 3)),
        schedule_minute_utc=int(raw.get("schedule_minute_utc", 0)),
        asset_delay_ms=int(raw.get("asset_delay_ms", 500)),
        price_window_days=int(raw.get("price_window_days", 2)),
        vs_currency=str(raw.get("vs_currency", "usd")),
    )


def _build_coingecko(raw: dict[str, Any]) -> CoinGeckoConfig:
    return CoinGeckoConfig(
        base_url=raw.get("base_url") or CoinGeckoConfig.base_url,
        api_key=raw.get("api_key", ""),
        cache_ttl_hours=float(raw.get("cache_ttl_hours", 24.0)),
        request_timeout=int(raw.get("request_timeout", 30)),
    )


def _build_series_store(raw: dict[str, Any]) -> SeriesStoreConfig:
    return SeriesStoreConfig(
        url=raw.get("url") or SeriesStoreConfig.url,
        table=raw.get("table") or SeriesStoreConfig.table,
        request_timeout=int(raw.get("request_timeout", 30)),
    )


def _build_markets(raw: list[dict[str, Any]]) -> tuple[RegisteredMarketConfig, ...]:
    markets: list[RegisteredMarketConfig] = []
    for m in raw:
        markets.append(
            RegisteredMarketConfig(
                chain=m.get("chain", ""),
                rpc_endpoint=m.get("rpc_endpoint", ""),
            )
        )
    return tuple(markets)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        risk=_build_risk(raw.get("risk") or {}),
        ingestion=_build_ingestion(raw.get("ingestion") or {}),
        coingecko=_build_coingecko(raw.get("coingecko") or {}),
        series_store=_build_series_store(raw.get("series_store") or {}),
        markets=_build_markets(raw.get("markets") or []),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.risk.bollinger_window < 2:
        raise ConfigurationError("risk.bollinger_window must be at least 2")
    if cfg.risk.bollinger_multiplier <= 0:
        raise ConfigurationError("risk.bollinger_multiplier must be positive")
    if cfg.risk.safety_multiplier <= 0:
        raise ConfigurationError("risk.safety_multiplier must be positive")

    ing = cfg.ingestion
    if not 0 <= ing.schedule_hour_utc <= 23:
        raise ConfigurationError("ingestion.schedule_hour_utc must be within 0-23")
    if not 0 <= ing.schedule_minute_utc <= 59:
        raise ConfigurationError("ingestion.schedule_minute_utc must be within 0-59")
    if ing.asset_delay_ms < 0:
        raise ConfigurationError("ingestion.asset_delay_ms must not be negative")
    if ing.price_window_days < 2:
        raise ConfigurationError("ingestion.price_window_days must be at least 2")

    seen: set[str] = set()
    for market in cfg.markets:
        if not market.chain:
            raise ConfigurationError("Registered market has no chain name")
        if market.chain in seen:
            raise ConfigurationError(f"Market '{market.chain}' registered twice")
        seen.add(market.chain)
