"""
Optimization engine: runs the full per-cycle pipeline over a fleet.

forecast -> analyze -> {match, battery, grid, load, equity} -> price
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from ..config import EngineConfig
from ..exceptions import OptimizationError
from ..forecasting import ForecastModel
from ..models import Household, NetworkState, OptimizationResult, OutageResponse, WeatherCondition
from .base import RuleBasedOptimizer
from .battery import BatteryStrategyOptimizer
from .equity import EquitableAccessPlanner
from .grid import GridBalancer, grid_stability, recommendations
from .load import LoadManager
from .matching import TradingPairMatcher
from .network import NetworkStateAnalyzer
from .outage import OutageSimulator
from .pricing import PriceOptimizer


class OptimizationEngine:
    """Composes the analyzer and rule-based optimizers into one cycle."""

    def __init__(self, config: Optional[EngineConfig] = None, forecast: Optional[ForecastModel] = None):
        self.config = config or EngineConfig()
        self.logger = logging.getLogger("solarsense.optimization.engine")

        self.forecast = forecast or ForecastModel(self.config.forecast)
        self.analyzer = NetworkStateAnalyzer(self.forecast)
        self.matcher = TradingPairMatcher(self.config.matching)
        self.pricer = PriceOptimizer(self.config.market)
        self.battery = BatteryStrategyOptimizer()
        self.grid = GridBalancer()
        self.load = LoadManager()
        self.equity = EquitableAccessPlanner()
        self.outages = OutageSimulator()
        self.rules: List[RuleBasedOptimizer] = [
            self.matcher, self.battery, self.grid, self.load, self.equity
        ]

        # Performance monitoring
        self._solve_history: List[Dict[str, Any]] = []
        self._max_history = 1000

    def analyze(
        self,
        households: Iterable[Household],
        weather: WeatherCondition,
        hour: Optional[int] = None,
        day_of_week: Optional[int] = None,
        month: Optional[int] = None
    ) -> NetworkState:
        return self.analyzer.analyze(households, weather, hour, day_of_week, month)

    def optimize(
        self,
        households: Iterable[Household],
        weather: WeatherCondition,
        hour: Optional[int] = None,
        day_of_week: Optional[int] = None,
        month: Optional[int] = None
    ) -> OptimizationResult:
        """
        Run one optimization cycle.

        Args:
            households: Read-only fleet snapshot
            weather: Weather for the cycle
            hour, day_of_week, month: Cycle time, defaulting to now

        Returns:
            OptimizationResult bundling every component's output
        """
        state = self.analyze(households, weather, hour, day_of_week, month)
        return self.optimize_state(state)

    def optimize_state(self, state: NetworkState) -> OptimizationResult:
        start_time = time.time()

        outputs = {rule.result_field: self._evaluate_rule(rule, state) for rule in self.rules}
        prices, pair_prices = self.pricer.price(outputs["trading_pairs"], state)

        result = OptimizationResult(
            prices=prices,
            pair_prices=pair_prices,
            grid_stability=grid_stability(state),
            recommendations=recommendations(state),
            **outputs,
        )

        self._record_solve_history(state, result, time.time() - start_time)
        return result

    def _evaluate_rule(self, rule: RuleBasedOptimizer, state: NetworkState) -> Any:
        try:
            return rule.evaluate(state)
        except Exception as e:
            self.logger.error(f"Rule {rule.name} failed: {e}")
            raise OptimizationError(f"Rule {rule.name} failed: {e}") from e

    def simulate_outage_response(
        self,
        affected_ids: Iterable[int],
        households: List[Household]
    ) -> OutageResponse:
        """Assess an outage without taking anyone offline."""
        return self.outages.respond(affected_ids, households)

    def _record_solve_history(self, state: NetworkState, result: OptimizationResult, solve_time: float) -> None:
        """Record solve history for analysis."""
        self._solve_history.append({
            "timestamp": datetime.now(),
            "households": len(state.households),
            "weather": state.weather.condition.value,
            "trading_pairs": len(result.trading_pairs),
            "traded_kwh": sum(p.energy_amount for p in result.trading_pairs),
            "grid_stability": result.grid_stability,
            "solve_time": solve_time,
        })

        # Limit history size
        if len(self._solve_history) > self._max_history:
            self._solve_history = self._solve_history[-self._max_history:]

    def get_performance_stats(self) -> Dict[str, Any]:
        """Get optimization performance statistics."""
        if not self._solve_history:
            return {}

        recent_history = self._solve_history[-100:]  # Last 100 cycles

        return {
            "total_cycles": len(recent_history),
            "avg_solve_time": float(np.mean([h["solve_time"] for h in recent_history])),
            "avg_grid_stability": float(np.mean([h["grid_stability"] for h in recent_history])),
            "avg_trading_pairs": float(np.mean([h["trading_pairs"] for h in recent_history])),
            "total_traded_kwh": float(sum(h["traded_kwh"] for h in recent_history)),
        }
