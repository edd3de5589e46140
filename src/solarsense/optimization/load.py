"""Load management: priority/deferrable loads and load shifting."""

from typing import Optional

from ..models import LoadManagement, LoadShiftingStrategy, NetworkState
from .base import RuleBasedOptimizer

PRIORITY_LOADS = ("refrigeration", "medical_equipment", "lighting")
DEFERRABLE_LOADS = ("water_heating", "air_conditioning", "electric_vehicle")

PEAK_START = 17
PEAK_END = 21


def is_peak_hour(hour: int) -> bool:
    return PEAK_START <= hour <= PEAK_END


class LoadManager(RuleBasedOptimizer):
    """Proposes load shifting for households in significant deficit."""

    result_field = "load_management"

    def __init__(self, deficit_threshold: float = 1.0, max_shift_kw: float = 2.0):
        super().__init__("load")
        self.deficit_threshold = deficit_threshold
        self.max_shift_kw = max_shift_kw

    def evaluate(self, state: NetworkState) -> LoadManagement:
        return self.plan(state)

    def plan(self, state: NetworkState, hour: Optional[int] = None) -> LoadManagement:
        hour = state.hour if hour is None else hour
        shift_by = 4 if is_peak_hour(hour) else 1

        result = LoadManagement()
        for h in state.households:
            deficit = h.predicted_demand - h.predicted_generation - h.battery_kwh
            if deficit <= self.deficit_threshold:
                continue

            result.priority_loads[h.id] = list(PRIORITY_LOADS)
            result.deferrable_loads[h.id] = list(DEFERRABLE_LOADS)
            result.load_shifting_opportunities[h.id] = LoadShiftingStrategy(
                shiftable_load=min(deficit * 0.3, self.max_shift_kw),
                optimal_shift_time=(hour + shift_by) % 24,
                potential_savings=deficit * 0.15,
            )

        result.peak_demand_reduction = sum(
            s.potential_savings for s in result.load_shifting_opportunities.values()
        )
        return result
