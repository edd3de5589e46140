"""
Synchronous facade for the API layer.

Every call delegates to the registered simulation clock, except
optimize_households(), which runs the engine on an externally supplied
roster without touching the simulation store.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import EngineConfig
from .models import (
    EquityAnalysis,
    Household,
    NetworkStats,
    OptimizationResult,
    OutageResponse,
    SimulationStatus,
    WeatherCondition,
)
from .optimization import OptimizationEngine
from .simulation import get_simulation_clock

CLOCK_NAME = "default"


def start_simulation(config: Optional[EngineConfig] = None) -> bool:
    """Start the shared clock; False if it was already running.

    config is used only when the shared clock is first created.
    """
    return get_simulation_clock(CLOCK_NAME, config).start()


def stop_simulation() -> None:
    get_simulation_clock(CLOCK_NAME).stop()


def get_status() -> SimulationStatus:
    return get_simulation_clock(CLOCK_NAME).status()


def change_weather(condition: Any) -> WeatherCondition:
    return get_simulation_clock(CLOCK_NAME).trigger_weather_change(condition)


def trigger_outage(household_ids: Optional[Iterable[int]] = None) -> OutageResponse:
    return get_simulation_clock(CLOCK_NAME).trigger_outage(household_ids)


def restore_power(household_ids: Iterable[int]) -> List[int]:
    return get_simulation_clock(CLOCK_NAME).restore_power(household_ids)


def get_optimization_result() -> OptimizationResult:
    return get_simulation_clock(CLOCK_NAME).get_optimization_result()


def get_network_stats() -> NetworkStats:
    return get_simulation_clock(CLOCK_NAME).get_network_stats()


def get_equity_analysis() -> EquityAnalysis:
    return get_simulation_clock(CLOCK_NAME).get_equity_analysis()


def optimize_households(
    records: Iterable[Mapping[str, Any]],
    condition: Any = "sunny",
    hour: Optional[int] = None,
    day_of_week: Optional[int] = None,
    month: Optional[int] = None,
    engine: Optional[OptimizationEngine] = None
) -> OptimizationResult:
    """
    Optimize an external household roster.

    Args:
        records: Household records (id, capacities, battery percent, ...)
        condition: Weather condition name
        hour, day_of_week, month: Cycle time, defaulting to now
        engine: Engine to reuse; a fresh one is built otherwise

    Returns:
        OptimizationResult for the roster

    Raises:
        ValidationError: If a record is malformed or the condition is unknown
    """
    households = [Household.from_record(r) for r in records]
    weather_hour = datetime.now().hour if hour is None else hour
    weather = WeatherCondition.for_condition(condition, hour=weather_hour)

    engine = engine or OptimizationEngine()
    return engine.optimize(households, weather, hour, day_of_week, month)


def result_summary(result: OptimizationResult) -> Dict[str, Any]:
    """Plain-dict view of a result for JSON responses."""
    return {
        "trading_pairs": [
            {
                "supplier_id": p.supplier_id,
                "demander_id": p.demander_id,
                "energy_amount": p.energy_amount,
                "distance": p.distance,
                "priority": p.priority.value,
                "price": price,
            }
            for p, price in zip(result.trading_pairs, result.pair_prices)
        ],
        "prices": dict(result.prices),
        "battery_strategy": {
            hid: action.value for hid, action in result.battery_strategy.strategies.items()
        },
        "grid_stability": result.grid_stability,
        "recommendations": list(result.recommendations),
        "timestamp": result.timestamp.isoformat(),
    }
