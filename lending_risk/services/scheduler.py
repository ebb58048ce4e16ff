"""Fixed-time daily scheduling for the ingestion job."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from ..timeseries.query import as_utc
from .ingestion import OhlcIngestionJob

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySchedule:
    hour: int = 3
    minute: int = 0

    def next_run(self, now: datetime) -> datetime:
        """First fire time strictly after ``now`` (UTC)."""
        now = as_utc(now)
        candidate = now.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    def seconds_until_next(self, now: datetime) -> float:
        return (self.next_run(now) - as_utc(now)).total_seconds()


async def run_scheduled(
    job: OhlcIngestionJob,
    schedule: DailySchedule,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Run ``job`` once a day at the scheduled UTC time, forever."""
    logger.info(
        "Starting daily OHLC schedule at %02d:%02d UTC", schedule.hour, schedule.minute
    )
    while True:
        wait = schedule.seconds_until_next(now())
        logger.info("Next OHLC fetch in %.0f seconds", wait)
        await sleep(wait)
        try:
            await job.run_once()
        except Exception as e:
            logger.error("Error in scheduled OHLC fetch: %s", e)
