"""
Rule-based optimization pipeline for the community energy market.

This package provides:
- Network state analysis with per-household forecasts
- Greedy, distance-ranked trading pair matching
- Multi-factor dynamic pricing
- Battery, grid balancing, load management and equity heuristics
- Outage impact and resilience assessment
"""

from .base import RuleBasedOptimizer
from .battery import BatteryStrategyOptimizer, choose_action
from .engine import OptimizationEngine
from .equity import EquitableAccessPlanner, priority_level, security_ratio
from .grid import GridBalancer, grid_stability, recommendations
from .load import LoadManager, is_peak_hour
from .matching import TradingPairMatcher, address_distance, determine_priority
from .network import NetworkStateAnalyzer
from .outage import OutageSimulator, resilience_score
from .pricing import PriceOptimizer, congestion_multiplier, elasticity_multiplier

__all__ = [
    # Base framework
    "RuleBasedOptimizer",
    "OptimizationEngine",
    "NetworkStateAnalyzer",

    # Market
    "TradingPairMatcher",
    "PriceOptimizer",
    "address_distance",
    "determine_priority",
    "congestion_multiplier",
    "elasticity_multiplier",

    # Storage and grid
    "BatteryStrategyOptimizer",
    "choose_action",
    "GridBalancer",
    "grid_stability",
    "recommendations",
    "LoadManager",
    "is_peak_hour",

    # Fairness and resilience
    "EquitableAccessPlanner",
    "security_ratio",
    "priority_level",
    "OutageSimulator",
    "resilience_score",
]
