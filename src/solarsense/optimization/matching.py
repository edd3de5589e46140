"""
Greedy supplier/demander matching.

Demanders are served most-urgent first (lowest battery fill), each by the
closest supplier that still has energy to give. The allocation is fully
deterministic for a given NetworkState.
"""

import math
from typing import Dict, List, Optional

from ..config import MatchingConfig
from ..models import AnalyzedHousehold, NetworkState, Priority, TradingPair
from .base import RuleBasedOptimizer


def address_distance(address_a: str, address_b: str) -> float:
    """Deterministic 1-15 km distance derived from two address strings."""
    code_a = sum(ord(c) for c in address_a or "")
    code_b = sum(ord(c) for c in address_b or "")
    return float(abs(code_a - code_b) % 15 + 1)


def determine_priority(household: AnalyzedHousehold) -> Priority:
    if household.battery_level < 10 and household.net_balance < -2:
        return Priority.EMERGENCY
    if household.battery_level < 20 or household.net_balance < -1.5:
        return Priority.HIGH
    return Priority.NORMAL


class TradingPairMatcher(RuleBasedOptimizer):
    """Pairs surplus households with deficit households."""

    result_field = "trading_pairs"

    def __init__(self, config: Optional[MatchingConfig] = None):
        super().__init__("matcher")
        self.config = config or MatchingConfig()

    def is_supplier(self, h: AnalyzedHousehold) -> bool:
        has_generation = h.predicted_generation > h.predicted_demand * 0.7
        has_battery = h.battery_kwh >= max(2.0, h.battery_capacity * 0.4)
        return h.is_online and (has_generation or has_battery)

    def is_demander(self, h: AnalyzedHousehold) -> bool:
        has_deficit = h.predicted_generation < h.predicted_demand * 1.1
        has_low_battery = h.battery_kwh < max(1.5, h.battery_capacity * 0.3)
        return h.is_online and (has_deficit or has_low_battery)

    def available_supply(self, h: AnalyzedHousehold) -> float:
        """Generation surplus plus battery energy above the reserve."""
        surplus = max(0.0, h.net_balance)
        battery = max(0.0, h.battery_kwh - h.battery_capacity * self.config.battery_reserve_ratio)
        return surplus + battery

    def need(self, h: AnalyzedHousehold) -> float:
        """Larger of the generation deficit and the gap to the target battery fill."""
        deficit = max(0.0, h.predicted_demand - h.predicted_generation)
        battery_gap = max(0.0, h.battery_capacity * self.config.target_battery_ratio - h.battery_kwh)
        return max(deficit, battery_gap)

    def evaluate(self, state: NetworkState) -> List[TradingPair]:
        return self.match(state)

    def match(self, state: NetworkState) -> List[TradingPair]:
        """
        Match suppliers to demanders.

        Returns:
            Ordered list of trading pairs; empty when nothing is actionable
        """
        min_trade = self.config.min_trade_kwh

        suppliers: Dict[int, AnalyzedHousehold] = {}
        balances: Dict[int, float] = {}
        for h in state.households:
            if not self.is_supplier(h):
                continue
            supply = self.available_supply(h)
            if supply >= self.config.min_supplier_kwh:
                suppliers[h.id] = h
                balances[h.id] = supply

        demanders = []
        for h in state.households:
            if not self.is_demander(h):
                continue
            deficit = max(0.0, h.predicted_demand - h.predicted_generation)
            battery_gap = max(0.0, h.battery_capacity * self.config.target_battery_ratio - h.battery_kwh)
            if deficit + battery_gap >= min_trade:
                demanders.append(h)
        # stable sort keeps input order among equally urgent demanders
        demanders.sort(key=lambda d: d.battery_ratio)

        pairs: List[TradingPair] = []
        for demander in demanders:
            need = self.need(demander)
            if need < min_trade:
                continue

            candidates = [
                sid for sid, balance in balances.items()
                if balance >= min_trade and sid != demander.id
            ]
            if not candidates:
                continue
            candidates.sort(key=lambda sid: address_distance(suppliers[sid].address, demander.address))
            best = candidates[0]

            amount = round(min(need, balances[best], self.config.max_trade_kwh), 2)
            if amount > balances[best]:
                amount = math.floor(balances[best] * 100) / 100
            if amount < min_trade:
                continue

            pairs.append(TradingPair(
                supplier_id=best,
                demander_id=demander.id,
                energy_amount=amount,
                distance=address_distance(suppliers[best].address, demander.address),
                priority=determine_priority(demander),
            ))

            remaining = balances[best] - amount
            if remaining >= min_trade:
                balances[best] = remaining
            else:
                del balances[best]

        if not pairs:
            self.logger.debug(
                f"No trades under {state.weather.condition.value}: "
                f"{len(suppliers)} suppliers, {len(demanders)} demanders"
            )
        return pairs
