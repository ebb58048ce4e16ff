"""Lower-Bollinger-band stress scenario for a lending account."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Mapping

from ..exceptions import CollaboratorError, LendingRiskError, ScenarioTimeoutError
from ..indicators.bollinger import clamp_lower
from ..interfaces.market_registry import MarketRegistry
from ..interfaces.reserve_reader import ReserveReader
from ..models import (
    SCENARIO_NO_DEBT,
    SCENARIO_OK,
    Account,
    BollingerBand,
    ClassifiedPositions,
    MarketDescriptor,
    ReservePosition,
    ReserveStatus,
    StressScenario,
    StressScenarioResult,
)
from ..reserves.classifier import classify_snapshot
from .bands import BandService

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_MULTIPLIER = 1.2


def _reserve_status(reserve: ReservePosition, band: BollingerBand | None) -> ReserveStatus:
    return ReserveStatus(
        reserve_id=reserve.reserve_id,
        underlying_asset=reserve.underlying_asset,
        name=reserve.name,
        symbol=reserve.symbol,
        decimals=reserve.decimals,
        underlying_balance=reserve.underlying_balance,
        band=band,
    )


def compute_stress_scenario(
    classified: ClassifiedPositions,
    bands: Mapping[str, BollingerBand | None],
    safety_multiplier: float = DEFAULT_SAFETY_MULTIPLIER,
) -> StressScenarioResult:
    """Value collateral at its lower band and derive the stressed health factor.

    liquidation power = sum(balance * lower * liquidation threshold)
    maximum power     = liquidation power / safety_multiplier
    health factor     = liquidation power / total borrows USD

    ``bands`` is keyed by lower-cased underlying address; reserves without a
    band contribute nothing but are still listed. With no debt the scenario
    status is ``no_debt`` and the health factor is None.
    """
    liquidation_power = 0.0
    statuses: list[ReserveStatus] = []

    for reserve in classified.collaterals:
        band = bands.get(reserve.underlying_asset.lower())
        if band is not None:
            band = clamp_lower(band)
            liquidation_power += (
                reserve.underlying_balance * band.lower * reserve.liquidation_threshold
            )
        statuses.append(_reserve_status(reserve, band))

    total_borrows = classified.total_borrows_usd
    if total_borrows > 0:
        status, health_factor = SCENARIO_OK, liquidation_power / total_borrows
    else:
        status, health_factor = SCENARIO_NO_DEBT, None

    return StressScenarioResult(
        total_borrows_usd=total_borrows,
        scenario=StressScenario(
            status=status,
            health_factor=health_factor,
            maximum_borrow_power=liquidation_power / safety_multiplier,
            liquidation_borrow_power=liquidation_power,
            reserve_status_list=tuple(statuses),
        ),
    )


class StressScenarioService:
    """Reads an account's positions and evaluates the lower-band scenario."""

    def __init__(
        self,
        reader: ReserveReader,
        bands: BandService,
        markets: MarketRegistry,
        safety_multiplier: float = DEFAULT_SAFETY_MULTIPLIER,
        default_timeout: float | None = None,
    ) -> None:
        self._reader = reader
        self._bands = bands
        self._markets = markets
        self._safety_multiplier = safety_multiplier
        self._default_timeout = default_timeout

    async def _band_for(
        self, reserve: ReservePosition, chain_id: int, as_of: datetime | None
    ) -> BollingerBand | None:
        try:
            return await self._bands.monthly_band(reserve.underlying_asset, chain_id, as_of)
        except Exception as e:
            logger.warning(
                "Band unavailable for %s (%s): %s",
                reserve.symbol,
                reserve.underlying_asset,
                e,
            )
            return None

    async def _evaluate(
        self, market: MarketDescriptor, account: Account, as_of: datetime | None
    ) -> StressScenarioResult:
        try:
            snapshot = await self._reader.get_snapshot(market, account)
        except LendingRiskError:
            raise
        except Exception as e:
            raise CollaboratorError(
                "reserve_reader", f"failed to read positions on {market.chain}: {e}"
            ) from e

        classified = classify_snapshot(snapshot)
        found = await asyncio.gather(
            *(self._band_for(r, market.chain_id, as_of) for r in classified.collaterals)
        )
        bands = {
            r.underlying_asset.lower(): band
            for r, band in zip(classified.collaterals, found)
        }

        result = compute_stress_scenario(classified, bands, self._safety_multiplier)
        logger.info(
            "Stress scenario for %s on %s: borrows $%.2f, liquidation power $%.2f, HF %s",
            account.address,
            market.chain,
            result.total_borrows_usd,
            result.scenario.liquidation_borrow_power,
            "n/a (no debt)"
            if result.scenario.health_factor is None
            else f"{result.scenario.health_factor:.4f}",
        )
        return result

    async def get_market_status(
        self,
        account: Account,
        chain: str,
        timeout: float | None = None,
        as_of: datetime | None = None,
    ) -> StressScenarioResult:
        """Evaluate the scenario for ``account`` on the market of ``chain``.

        Raises:
            ConfigurationError: chain not registered for this deployment.
            CollaboratorError: the reserve reader failed.
            ScenarioTimeoutError: ``timeout`` seconds elapsed first.
        """
        market = self._markets.resolve(chain)
        timeout = timeout if timeout is not None else self._default_timeout

        if timeout is None:
            return await self._evaluate(market, account, as_of)
        try:
            return await asyncio.wait_for(self._evaluate(market, account, as_of), timeout)
        except asyncio.TimeoutError as e:
            raise ScenarioTimeoutError(
                f"Stress scenario for {account.address} on {chain} "
                f"timed out after {timeout}s"
            ) from e
