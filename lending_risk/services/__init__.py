"""Service modules"""
from .bands import BandService
from .ingestion import IngestionReport, OhlcIngestionJob, derive_daily_candle
from .scenario import StressScenarioService, compute_stress_scenario
from .scheduler import DailySchedule, run_scheduled

__all__ = [
    "BandService",
    "DailySchedule",
    "IngestionReport",
    "OhlcIngestionJob",
    "StressScenarioService",
    "compute_stress_scenario",
    "derive_daily_candle",
    "run_scheduled",
]
