"""Engine-independent candle queries.

A ``BarQuery`` describes what to read; ``to_sql`` renders it for QuestDB and
``apply_query`` evaluates it over candles held in memory. Both produce the
same result for the same data.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from ..models import Candle, PriceStats


class SortOrder(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class Interval(str, enum.Enum):
    """Calendar-aligned resampling buckets."""

    MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    HOUR = "1h"
    FOUR_HOURS = "4h"
    DAY = "1d"
    WEEK = "1w"
    MONTH = "1M"


_INTERVAL_MINUTES = {
    Interval.MINUTE: 1,
    Interval.FIVE_MINUTES: 5,
    Interval.FIFTEEN_MINUTES: 15,
    Interval.HOUR: 60,
    Interval.FOUR_HOURS: 240,
}


@dataclass(frozen=True)
class BarQuery:
    """Filter, ordering and limit for a candle read.

    ``from_ts`` is inclusive, ``to_ts`` exclusive. With ``latest`` set, the
    limit keeps the most recent bars, which are then returned in ``order``.
    """

    address: str
    chain_id: int | None = None
    from_ts: datetime | None = None
    to_ts: datetime | None = None
    limit: int | None = None
    order: SortOrder = SortOrder.DESC
    interval: Interval | None = None
    latest: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", self.address.lower())
        if not isinstance(self.order, SortOrder):
            raise TypeError(f"order must be a SortOrder, got {self.order!r}")
        if self.interval is not None and not isinstance(self.interval, Interval):
            raise TypeError(f"interval must be an Interval, got {self.interval!r}")
        if self.limit is not None and self.limit <= 0:
            raise ValueError("limit must be positive")


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def as_utc(ts: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def month_start(ts: datetime) -> datetime:
    """First instant of the calendar month containing ``ts`` (UTC)."""
    ts = as_utc(ts)
    return ts.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def day_start(ts: datetime) -> datetime:
    ts = as_utc(ts)
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def bucket_start(ts: datetime, interval: Interval) -> datetime:
    """Start of the calendar-aligned bucket containing ``ts``."""
    ts = as_utc(ts)
    if interval == Interval.MONTH:
        return month_start(ts)
    if interval == Interval.WEEK:
        return day_start(ts) - timedelta(days=ts.weekday())
    if interval == Interval.DAY:
        return day_start(ts)
    minutes = _INTERVAL_MINUTES[interval]
    since_midnight = ts.hour * 60 + ts.minute
    return day_start(ts) + timedelta(minutes=since_midnight - since_midnight % minutes)


def monthly_bars_query(
    address: str,
    chain_id: int,
    limit: int,
    as_of: datetime | None = None,
    order: SortOrder = SortOrder.ASC,
) -> BarQuery:
    """The ``limit`` most recent monthly bars completed before ``as_of``'s month."""
    cutoff = month_start(as_of or datetime.now(timezone.utc))
    return BarQuery(
        address=address,
        chain_id=chain_id,
        to_ts=cutoff,
        limit=limit,
        order=order,
        interval=Interval.MONTH,
        latest=True,
    )


# ---------------------------------------------------------------------------
# SQL rendering (QuestDB)
# ---------------------------------------------------------------------------

_COLUMNS = "address, chain_id, open, high, low, close, volume, timestamp"
_AGGREGATED_COLUMNS = (
    "address, chain_id, first(open) AS open, max(high) AS high, "
    "min(low) AS low, last(close) AS close, sum(volume) AS volume, timestamp"
)


def quote(value: str) -> str:
    """Single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def timestamp_literal(ts: datetime) -> str:
    return quote(as_utc(ts).strftime("%Y-%m-%dT%H:%M:%S.%fZ"))


def to_sql(query: BarQuery, table: str) -> str:
    conditions = [f"address = {quote(query.address)}"]
    if query.chain_id is not None:
        conditions.append(f"chain_id = {int(query.chain_id)}")
    if query.from_ts is not None:
        conditions.append(f"timestamp >= {timestamp_literal(query.from_ts)}")
    if query.to_ts is not None:
        conditions.append(f"timestamp < {timestamp_literal(query.to_ts)}")

    columns = _AGGREGATED_COLUMNS if query.interval else _COLUMNS
    sql = f"SELECT {columns} FROM {table} WHERE " + " AND ".join(conditions)
    if query.interval is not None:
        sql += f" SAMPLE BY {query.interval.value} ALIGN TO CALENDAR"

    if query.latest and query.limit is not None:
        sql += f" ORDER BY timestamp DESC LIMIT {int(query.limit)}"
        if query.order == SortOrder.ASC:
            sql = f"SELECT * FROM ({sql}) ORDER BY timestamp ASC"
        return sql

    sql += f" ORDER BY timestamp {query.order.value}"
    if query.limit is not None:
        sql += f" LIMIT {int(query.limit)}"
    return sql


def stats_sql(
    address: str,
    table: str,
    chain_id: int | None = None,
    from_ts: datetime | None = None,
) -> str:
    """Whole-range first/last/high/low/volume summary for one asset."""
    conditions = [f"address = {quote(address.lower())}"]
    if chain_id is not None:
        conditions.append(f"chain_id = {int(chain_id)}")
    if from_ts is not None:
        conditions.append(f"timestamp >= {timestamp_literal(from_ts)}")
    return (
        "SELECT first(open) AS first_price, last(close) AS last_price, "
        "max(high) AS high_price, min(low) AS low_price, sum(volume) AS total_volume "
        f"FROM {table} WHERE " + " AND ".join(conditions)
    )


# ---------------------------------------------------------------------------
# In-memory evaluation
# ---------------------------------------------------------------------------


def matches(candle: Candle, query: BarQuery) -> bool:
    if candle.address.lower() != query.address:
        return False
    if query.chain_id is not None and candle.chain_id != query.chain_id:
        return False
    ts = as_utc(candle.timestamp)
    if query.from_ts is not None and ts < as_utc(query.from_ts):
        return False
    if query.to_ts is not None and ts >= as_utc(query.to_ts):
        return False
    return True


def resample(candles: Iterable[Candle], interval: Interval) -> list[Candle]:
    """Aggregate candles into calendar buckets: first/max/min/last/sum."""
    buckets: dict[tuple[str, int, datetime], list[Candle]] = {}
    for candle in sorted(candles, key=lambda c: as_utc(c.timestamp)):
        key = (candle.address.lower(), candle.chain_id, bucket_start(candle.timestamp, interval))
        buckets.setdefault(key, []).append(candle)

    out: list[Candle] = []
    for (address, chain_id, start), group in buckets.items():
        out.append(
            Candle(
                address=address,
                chain_id=chain_id,
                open=group[0].open,
                high=max(c.high for c in group),
                low=min(c.low for c in group),
                close=group[-1].close,
                volume=sum(c.volume for c in group),
                timestamp=start,
            )
        )
    return sorted(out, key=lambda c: c.timestamp)


def apply_query(candles: Iterable[Candle], query: BarQuery) -> list[Candle]:
    selected = [c for c in candles if matches(c, query)]
    if query.interval is not None:
        selected = resample(selected, query.interval)

    ascending = sorted(selected, key=lambda c: as_utc(c.timestamp))
    if query.latest and query.limit is not None:
        ascending = ascending[-query.limit:]
        return ascending if query.order == SortOrder.ASC else ascending[::-1]

    ordered = ascending if query.order == SortOrder.ASC else ascending[::-1]
    if query.limit is not None:
        ordered = ordered[: query.limit]
    return ordered


def price_stats(candles: Iterable[Candle]) -> PriceStats | None:
    """Summarise candles in timestamp order; None when there are none."""
    ordered = sorted(candles, key=lambda c: as_utc(c.timestamp))
    if not ordered:
        return None
    return PriceStats(
        first_price=ordered[0].open,
        last_price=ordered[-1].close,
        high_price=max(c.high for c in ordered),
        low_price=min(c.low for c in ordered),
        total_volume=sum(c.volume for c in ordered),
    )
