"""
Simulation clock.

Periodically runs the optimization pipeline against the isolated simulation
store and applies its side effects: meter readings, completed trades and
battery charge/discharge. Ticks never overlap; a tick requested while another
is running is skipped.
"""

import logging
import math
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import EngineConfig
from ..exceptions import SimulationError
from ..models import (
    BatteryAction,
    BatteryStrategy,
    EquityAnalysis,
    Household,
    NetworkState,
    NetworkStats,
    OptimizationResult,
    OutageResponse,
    SimulationStatus,
    TradingPair,
    WeatherCondition,
)
from ..optimization import OptimizationEngine
from .data import SimulationDataContext
from .weather import WeatherSimulator

CARBON_KG_PER_KWH = 0.45
DEFAULT_AVERAGE_PRICE = 5.0
DEFAULT_NETWORK_EFFICIENCY = 85.0


def time_parts(now: datetime):
    """(hour, day of week with 0 = Sunday, month with 0 = January)."""
    return now.hour, (now.weekday() + 1) % 7, now.month - 1


def reading_variance(hour: int, household_id: int) -> float:
    return math.sin((hour + household_id) * math.pi / 12) * 0.1


def average_distance(household_count: int) -> float:
    if household_count < 2:
        return 1.2
    return max(0.5, min(5.0, math.sqrt(household_count) * 0.3))


def network_efficiency(total_generation: float, total_consumption: float) -> float:
    if total_generation == 0 and total_consumption == 0:
        return DEFAULT_NETWORK_EFFICIENCY
    ratio = total_generation / total_consumption if total_consumption > 0 else 1.0
    return min(100.0, max(50.0, ratio * 85))


class SimulationClock:
    """Drives the optimization pipeline on a fixed interval."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        engine: Optional[OptimizationEngine] = None,
        clock: Callable[[], datetime] = datetime.now,
        name: str = "default"
    ):
        self.config = config or EngineConfig()
        self.name = name
        self.logger = logging.getLogger(f"solarsense.simulation.clock.{name}")

        self._clock = clock
        self.engine = engine or OptimizationEngine(self.config)
        self.data = SimulationDataContext(self.config.simulation, clock=clock)
        self.weather = WeatherSimulator(self.config.simulation.initial_weather, clock=clock)

        self._last_result: Optional[OptimizationResult] = None
        self._tick_lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stop_event.set()
        self._thread: Optional[threading.Thread] = None

        self.metrics = {
            "cycles_completed": 0,
            "cycles_skipped": 0,
            "cycles_failed": 0,
            "trades_executed": 0,
        }

    @property
    def outages(self):
        return self.engine.outages

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    # Lifecycle

    def start(self, households: Optional[Sequence[Household]] = None, background: bool = True) -> bool:
        """
        Reset the store, seed households and begin ticking.

        Args:
            households: Optional roster to simulate instead of the demo fleet;
                members are copied and given reserved simulation ids
            background: Start the periodic tick thread and training worker

        Returns:
            False if the clock was already running

        Raises:
            SimulationError: If background ticking is requested with a
                non-positive tick interval
        """
        with self._lifecycle_lock:
            if self.is_running:
                self.logger.debug("Simulation already running")
                return False

            interval = self.config.simulation.tick_interval_seconds
            if background and interval <= 0:
                raise SimulationError(f"Tick interval must be > 0, got {interval}")

            self.data.reset()
            self.outages.clear()
            self._last_result = None
            if households is None:
                self.data.initialize_demo_households()
            else:
                for household in households:
                    self.data.add_household(household.copy())

            self._stop_event.clear()
            if background:
                self.engine.forecast.start_training()
                self._thread = threading.Thread(target=self._run_loop, daemon=True)
                self._thread.start()

        self.logger.info(
            f"Simulation started with {len(self.data.households)} households, "
            f"ticking every {self.config.simulation.tick_interval_seconds}s"
        )
        return True

    def stop(self, timeout: float = 10.0) -> None:
        """Stop ticking; safe to call repeatedly. A tick in progress completes."""
        with self._lifecycle_lock:
            if not self.is_running:
                return
            self._stop_event.set()
            thread, self._thread = self._thread, None

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self.engine.forecast.stop_training()
        self.logger.info("Simulation stopped")

    def _run_loop(self) -> None:
        interval = self.config.simulation.tick_interval_seconds
        while not self._stop_event.wait(interval):
            self.run_cycle()

    # Ticks

    def run_cycle(self) -> Optional[OptimizationResult]:
        """
        Run one tick.

        Returns:
            The new result, or None if the tick was skipped or failed; in both
            cases the previous result is kept
        """
        if not self._tick_lock.acquire(blocking=False):
            self.metrics["cycles_skipped"] += 1
            self.logger.debug("Tick skipped, previous tick still running")
            return None

        try:
            hour, day_of_week, month = time_parts(self._clock())
            weather = self.weather.current

            state = self.engine.analyze(self.data.snapshot(), weather, hour, day_of_week, month)
            result = self.engine.optimize_state(state)
            self._last_result = result

            self._record_readings(state)
            self._execute_trades(result.trading_pairs, result.pair_prices)
            self._apply_battery_strategy(result.battery_strategy)

            self.metrics["cycles_completed"] += 1
            self.logger.info(
                f"Sim: {weather.condition.value} | Grid: {result.grid_stability * 100:.1f}% "
                f"| Trades: {len(result.trading_pairs)}"
            )
            return result
        except Exception:
            self.metrics["cycles_failed"] += 1
            self.logger.exception("Simulation cycle failed, keeping previous result")
            return None
        finally:
            self._tick_lock.release()

    def _record_readings(self, state: NetworkState) -> None:
        for h in state.households:
            if not h.is_online:
                continue
            variance = reading_variance(state.hour, h.id)
            self.data.add_reading(
                household_id=h.id,
                solar_generation=max(0.0, round(h.predicted_generation * (1 + variance), 3)),
                energy_consumption=max(0.0, round(h.predicted_demand * (1 + variance * 1.5), 3)),
                battery_level=h.battery_level,
                weather_condition=state.weather.condition.value,
                temperature=round(state.weather.temperature),
            )

    def _execute_trades(self, pairs: List[TradingPair], prices: List[int]) -> None:
        for pair, price in zip(pairs, prices):
            self.data.add_trade(
                seller_household_id=pair.supplier_id,
                buyer_household_id=pair.demander_id,
                energy_amount=pair.energy_amount,
                price_per_kwh=price,
            )
        self.metrics["trades_executed"] += len(pairs)

    def _apply_battery_strategy(self, strategy: BatteryStrategy) -> None:
        charge = self.config.simulation.charge_rate_kwh
        discharge = self.config.simulation.discharge_rate_kwh

        with self.data.lock:
            for household in self.data.households:
                capacity = household.battery_capacity or 0.0
                if not household.is_online or capacity <= 0:
                    continue

                action = strategy.action_for(household.id)
                stored = household.battery_kwh
                if action == BatteryAction.CHARGE:
                    stored = min(capacity, stored + charge)
                elif action == BatteryAction.DISCHARGE:
                    stored = max(0.0, stored - discharge)
                else:
                    continue

                household.battery_level = max(0.0, min(100.0, stored / capacity * 100))

    # Operator controls

    def trigger_weather_change(self, condition: Any) -> WeatherCondition:
        """Change the weather and immediately run a tick under it."""
        weather = self.weather.set_weather(condition)
        self.run_cycle()
        return weather

    def select_outage_targets(self, fraction: Optional[float] = None) -> List[int]:
        """The lowest-battery households, max(1, floor(n * fraction)) of them."""
        fraction = self.config.simulation.default_outage_fraction if fraction is None else fraction
        households = self.data.households
        if not households:
            return []
        count = max(1, math.floor(len(households) * fraction))
        ranked = sorted(households, key=lambda h: h.battery_level or 0)
        return [h.id for h in ranked[:count]]

    def trigger_outage(self, household_ids: Optional[Iterable[int]] = None) -> OutageResponse:
        """Take households offline; with no ids, the lowest-battery quarter."""
        ids = list(household_ids or [])
        with self.data.lock:
            if not ids:
                ids = self.select_outage_targets()
            return self.outages.trigger_outage(ids, self.data.households)

    def restore_power(self, household_ids: Iterable[int]) -> List[int]:
        with self.data.lock:
            return self.outages.restore_power(household_ids, self.data.households)

    # Queries

    def get_optimization_result(self) -> OptimizationResult:
        """Last tick's result, or a fresh side-effect-free computation."""
        if self._last_result is not None:
            return self._last_result

        households = self.data.snapshot()
        if not households:
            return OptimizationResult(
                grid_stability=0.95,
                recommendations=["No households available for optimization"],
            )

        hour, day_of_week, month = time_parts(self._clock())
        return self.engine.optimize(households, self.weather.current, hour, day_of_week, month)

    def get_network_stats(self) -> NetworkStats:
        households = self.data.snapshot()
        online = [h for h in households if h.is_online]
        hour, day_of_week, month = time_parts(self._clock())

        state = self.engine.analyze(online, self.weather.current, hour, day_of_week, month)
        stored = sum(h.battery_kwh for h in online)

        recent = self.data.recent_trades(10)
        velocity = sum(t.energy_amount for t in recent)
        price = (
            sum(t.price_per_kwh for t in recent) / len(recent)
            if recent else DEFAULT_AVERAGE_PRICE
        )

        return NetworkStats(
            total_households=len(households),
            active_connections=len(online),
            total_generation=round(state.total_generation, 1),
            total_consumption=round(state.total_demand, 1),
            battery_storage_total=round(stored, 1),
            current_battery_level=round(stored, 1),
            trading_velocity=round(velocity, 1),
            carbon_reduction=round(velocity * CARBON_KG_PER_KWH, 1),
            average_price=round(price, 2),
            average_distance=round(average_distance(len(households)), 2),
            network_efficiency=round(network_efficiency(state.total_generation, state.total_demand), 2),
        )

    def get_equity_analysis(self) -> EquityAnalysis:
        households = self.data.snapshot()
        if not households:
            return EquityAnalysis(
                equity_score=0.85,
                average_energy_security=0.75,
                vulnerable_count=0,
            )

        hour, day_of_week, month = time_parts(self._clock())
        state = self.engine.analyze(households, self.weather.current, hour, day_of_week, month)
        access = self.engine.equity.plan(state)
        return EquityAnalysis(
            equity_score=access.equity_score,
            average_energy_security=access.average_energy_security,
            vulnerable_count=len(access.vulnerable_households),
            vulnerable_households=access.vulnerable_households,
            emergency_support=access.emergency_support,
        )

    def status(self) -> SimulationStatus:
        return SimulationStatus(
            running=self.is_running,
            weather=self.weather.current,
            active_outage_ids=self.outages.active_outages,
            network_stats=self.get_network_stats(),
        )

    def get_simulation_data(self) -> Dict[str, Any]:
        return {
            "households": self.data.snapshot(),
            "recent_trades": self.data.recent_trades(20),
            "recent_readings": self.data.recent_readings(50),
            "weather": self.weather.current,
        }
