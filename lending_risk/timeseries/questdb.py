"""QuestDB-backed candle store using the HTTP ``/exec`` endpoint."""
from __future__ import annotations

import asyncio
import logging
import ssl
from datetime import datetime
from typing import Any, Iterable

import aiohttp
import certifi

from ..config import SeriesStoreConfig
from ..exceptions import CollaboratorError
from ..models import Candle, PriceStats
from .query import (
    BarQuery,
    SortOrder,
    as_utc,
    quote,
    stats_sql,
    timestamp_literal,
    to_sql,
)

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
  address SYMBOL CAPACITY 256 CACHE,
  chain_id INT,
  open DOUBLE,
  high DOUBLE,
  low DOUBLE,
  close DOUBLE,
  volume DOUBLE,
  timestamp TIMESTAMP
) TIMESTAMP(timestamp) PARTITION BY YEAR WAL
DEDUP UPSERT KEYS(timestamp, address, chain_id)
"""


def parse_timestamp(value: Any) -> datetime:
    """Parse QuestDB's ISO timestamp strings (``...Z``) as aware UTC datetimes."""
    if isinstance(value, datetime):
        return as_utc(value)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def rows_to_candles(result: dict[str, Any]) -> list[Candle]:
    """Convert an ``/exec`` JSON response into candles."""
    names = [c["name"] for c in result.get("columns", [])]
    candles: list[Candle] = []
    for row in result.get("dataset", []):
        record = dict(zip(names, row))
        candles.append(
            Candle(
                address=str(record["address"]).lower(),
                chain_id=int(record["chain_id"]),
                open=float(record["open"]),
                high=float(record["high"]),
                low=float(record["low"]),
                close=float(record["close"]),
                volume=float(record.get("volume") or 0.0),
                timestamp=parse_timestamp(record["timestamp"]),
            )
        )
    return candles


def row_to_stats(result: dict[str, Any]) -> PriceStats | None:
    """Convert a stats query response; None when the asset has no bars."""
    dataset = result.get("dataset") or []
    if not dataset:
        return None
    names = [c["name"] for c in result.get("columns", [])]
    record = dict(zip(names, dataset[0]))
    if record.get("first_price") is None:
        return None
    return PriceStats(
        first_price=float(record["first_price"]),
        last_price=float(record["last_price"]),
        high_price=float(record["high_price"]),
        low_price=float(record["low_price"]),
        total_volume=float(record.get("total_volume") or 0.0),
    )


def insert_sql(candle: Candle, table: str) -> str:
    return (
        f"INSERT INTO {table} "
        "(address, chain_id, open, high, low, close, volume, timestamp) VALUES ("
        f"{quote(candle.address.lower())}, {int(candle.chain_id)}, "
        f"{float(candle.open)!r}, {float(candle.high)!r}, {float(candle.low)!r}, "
        f"{float(candle.close)!r}, {float(candle.volume)!r}, "
        f"{timestamp_literal(candle.timestamp)})"
    )


class QuestDBStore:
    """Series store over QuestDB's REST API."""

    def __init__(self, config: SeriesStoreConfig) -> None:
        self.exec_url = config.url.rstrip("/") + "/exec"
        self.table = config.table
        self.timeout = config.request_timeout

    async def execute(self, sql: str) -> dict[str, Any]:
        """Run one SQL statement and return the decoded JSON response."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    self.exec_url,
                    params={"query": sql},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    try:
                        result = await response.json(content_type=None)
                    except ValueError as e:
                        raise CollaboratorError(
                            "questdb", f"HTTP {response.status}: response is not JSON"
                        ) from e
                    if response.status != 200 or "error" in result:
                        raise CollaboratorError(
                            "questdb",
                            f"HTTP {response.status}: {result.get('error', 'unknown error')}",
                        )
                    return result
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CollaboratorError("questdb", str(e)) from e

    async def create_table(self) -> None:
        await self.execute(_CREATE_TABLE.format(table=self.table))
        logger.info("Table %s created or already exists", self.table)

    async def insert_bar(self, candle: Candle) -> None:
        await self.execute(insert_sql(candle, self.table))
        logger.debug("OHLC bar inserted for %s", candle.address)

    async def insert_bars(self, candles: Iterable[Candle]) -> None:
        count = 0
        for candle in candles:
            await self.insert_bar(candle)
            count += 1
        logger.debug("Batch of %d OHLC bars inserted", count)

    async def query_bars(self, query: BarQuery) -> list[Candle]:
        if query.interval is not None:
            raise ValueError("query_bars does not resample; use aggregate_bars")
        return rows_to_candles(await self.execute(to_sql(query, self.table)))

    async def aggregate_bars(self, query: BarQuery) -> list[Candle]:
        if query.interval is None:
            raise ValueError("aggregate_bars requires an interval")
        return rows_to_candles(await self.execute(to_sql(query, self.table)))

    async def get_latest_bar(self, address: str, chain_id: int | None = None) -> Candle | None:
        bars = await self.query_bars(
            BarQuery(address=address, chain_id=chain_id, limit=1, order=SortOrder.DESC)
        )
        return bars[0] if bars else None

    async def get_price_stats(
        self,
        address: str,
        chain_id: int | None = None,
        from_ts: datetime | None = None,
    ) -> PriceStats | None:
        return row_to_stats(
            await self.execute(stats_sql(address, self.table, chain_id, from_ts))
        )

    async def health_check(self) -> dict[str, str]:
        """Report whether QuestDB answers a trivial query."""
        try:
            await self.execute("SELECT 1")
        except CollaboratorError as e:
            logger.warning("QuestDB health check failed: %s", e)
            return {"status": "unhealthy", "message": str(e)}
        return {"status": "healthy", "message": "QuestDB connection is healthy"}
