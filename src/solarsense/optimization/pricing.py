"""Dynamic clearing prices for matched trades."""

import logging
import math
from typing import Dict, List, Optional, Tuple

from ..config import MarketConfig
from ..models import NetworkState, Priority, TradingPair

PRIORITY_MULTIPLIERS = {
    Priority.NORMAL: 1.0,
    Priority.HIGH: 1.25,
    Priority.EMERGENCY: 1.5,
}


def congestion_multiplier(state: NetworkState) -> float:
    utilization = state.total_demand / max(state.total_generation, 0.1)
    if utilization > 0.95:
        return 1.4
    if utilization > 0.85:
        return 1.2
    if utilization < 0.6:
        return 0.9
    return 1.0


def elasticity_multiplier(state: NetworkState) -> float:
    """Shortage raises the price up to 1.5x, surplus lowers it to 0.75x."""
    ratio = state.total_generation / max(state.total_demand, 0.1)
    if ratio < 0.8:
        return 1.5
    if ratio < 0.95:
        return 1.25
    if ratio > 1.2:
        return 0.75
    if ratio > 1.05:
        return 0.9
    return 1.0


class PriceOptimizer:
    """Prices each trading pair from tariff, congestion, priority and elasticity."""

    def __init__(self, config: Optional[MarketConfig] = None):
        self.logger = logging.getLogger("solarsense.optimization.pricing")
        self.config = config or MarketConfig()

    def time_of_use_price(self, hour: int) -> float:
        if 18 <= hour <= 22:
            return self.config.peak_rate
        if 6 <= hour <= 9:
            return self.config.morning_peak_rate
        if 10 <= hour <= 17:
            return self.config.day_rate
        return self.config.off_peak_rate

    def transmission_surcharge(self, distance: float) -> float:
        return min(self.config.max_transmission_surcharge, distance / 100 * 0.3)

    def price_pair(self, pair: TradingPair, state: NetworkState) -> int:
        price = self.time_of_use_price(state.hour)
        price += self.transmission_surcharge(pair.distance)
        price *= congestion_multiplier(state)
        price *= PRIORITY_MULTIPLIERS.get(pair.priority, 1.0)
        price *= elasticity_multiplier(state)
        price -= self.config.renewable_discount
        return int(max(self.config.price_floor, min(self.config.price_ceiling, math.floor(price + 0.5))))

    def price(
        self,
        pairs: List[TradingPair],
        state: NetworkState
    ) -> Tuple[Dict[int, int], List[int]]:
        """
        Price every pair.

        Returns:
            (price per supplier id, price per pair). When a supplier appears
            in several pairs the supplier map keeps the last pair's price.
        """
        by_supplier: Dict[int, int] = {}
        by_pair: List[int] = []
        for pair in pairs:
            value = self.price_pair(pair, state)
            by_supplier[pair.supplier_id] = value
            by_pair.append(value)
        return by_supplier, by_pair
