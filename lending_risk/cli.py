"""Command-line interface for the lending risk monitor."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .markets import ConfigMarketRegistry
from .providers import CoinGeckoClient
from .services import BandService, DailySchedule, OhlcIngestionJob, run_scheduled
from .timeseries import QuestDBStore


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lending-risk",
        description="Lending position stress scenarios and daily OHLC ingestion",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("ingest", help="Fetch and store yesterday's candles now")
    sub.add_parser("schedule", help="Run the daily ingestion schedule")
    sub.add_parser("init-store", help="Create the candle table if missing")

    band_parser = sub.add_parser("band", help="Print an asset's monthly Bollinger band")
    band_parser.add_argument("address", help="Underlying asset address")
    band_parser.add_argument("chain", help="Market chain name, e.g. Ethereum")

    stats_parser = sub.add_parser("stats", help="Print an asset's stored price range summary")
    stats_parser.add_argument("address", help="Underlying asset address")
    stats_parser.add_argument("chain", help="Market chain name, e.g. Ethereum")

    sub.add_parser("health", help="Check the candle store connection")

    return parser


def build_job(config: AppConfig, store: QuestDBStore) -> OhlcIngestionJob:
    return OhlcIngestionJob(
        registry=ConfigMarketRegistry(config.markets),
        catalogue=CoinGeckoClient(config.coingecko),
        store=store,
        config=config.ingestion,
    )


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    store = QuestDBStore(config.series_store)

    if args.command == "ingest":
        await build_job(config, store).run_once()
    elif args.command == "schedule":
        schedule = DailySchedule(
            config.ingestion.schedule_hour_utc, config.ingestion.schedule_minute_utc
        )
        await run_scheduled(build_job(config, store), schedule)
    elif args.command == "init-store":
        await store.create_table()
    elif args.command == "band":
        market = ConfigMarketRegistry(config.markets).resolve(args.chain)
        bands = BandService(
            store, config.risk.bollinger_window, config.risk.bollinger_multiplier
        )
        band = await bands.monthly_band(args.address, market.chain_id)
        print(json.dumps(band.to_dict() if band else None))
    elif args.command == "stats":
        market = ConfigMarketRegistry(config.markets).resolve(args.chain)
        stats = await store.get_price_stats(args.address, market.chain_id)
        print(json.dumps(stats.to_dict() if stats else None))
    elif args.command == "health":
        health = await store.health_check()
        print(json.dumps(health))
        if health["status"] != "healthy":
            sys.exit(1)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))
