"""Per-cycle battery action selection."""

from ..models import AnalyzedHousehold, BatteryAction, BatteryStrategy, NetworkState
from .base import RuleBasedOptimizer


def choose_action(household: AnalyzedHousehold) -> BatteryAction:
    ratio = household.battery_ratio
    if household.net_balance > 0:
        return BatteryAction.CHARGE if ratio < 0.8 else BatteryAction.SELL
    return BatteryAction.DISCHARGE if ratio > 0.3 else BatteryAction.BUY


class BatteryStrategyOptimizer(RuleBasedOptimizer):
    """Assigns charge/sell on surplus and discharge/buy on deficit."""

    result_field = "battery_strategy"

    def __init__(self):
        super().__init__("battery")

    def evaluate(self, state: NetworkState) -> BatteryStrategy:
        return self.optimize(state)

    def optimize(self, state: NetworkState) -> BatteryStrategy:
        return BatteryStrategy(
            strategies={h.id: choose_action(h) for h in state.households}
        )
