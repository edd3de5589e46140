"""Grid balance, stability score and operator recommendations."""

from typing import List

from ..models import GridBalancing, NetworkState
from .base import RuleBasedOptimizer

LOAD_SHEDDING_THRESHOLD = 0.9
TARGET_LOAD_FACTOR = 0.85


def grid_stability(state: NetworkState) -> float:
    """Score in [0, 1]; 1.0 when generation exactly meets demand."""
    if state.total_demand == 0:
        return 1.0 if state.total_generation > 0 else 0.5

    imbalance = abs(state.total_generation - state.total_demand) / state.total_demand
    return max(0.0, 1.0 - imbalance)


def recommendations(state: NetworkState) -> List[str]:
    messages = []

    if grid_stability(state) < 0.7:
        messages.append("Grid stability low - recommend immediate battery deployment")

    if state.total_generation < state.total_demand * 0.8:
        messages.append("Energy deficit detected - activate demand response programs")

    needing_support = sum(1 for h in state.households if h.needs_support)
    if needing_support > len(state.households) * 0.4:
        messages.append("High network demand - consider temporary load shedding")

    return messages


class GridBalancer(RuleBasedOptimizer):
    """Network load factor and shedding/support candidates."""

    result_field = "grid_balancing"

    def __init__(self):
        super().__init__("grid")

    def evaluate(self, state: NetworkState) -> GridBalancing:
        return self.balance(state)

    def balance(self, state: NetworkState) -> GridBalancing:
        generation = sum(h.predicted_generation for h in state.households)
        demand = sum(h.predicted_demand for h in state.households)
        battery_capacity = sum(h.battery_capacity for h in state.households)
        stored = sum(h.battery_kwh for h in state.households)

        ratio = generation / demand if demand > 0 else 1.0
        available = generation + stored
        if available > 0:
            load_factor = min(1.0, demand / available)
        else:
            load_factor = 1.0 if demand > 0 else 0.0

        shedding = []
        support = []
        for h in state.households:
            surplus = h.predicted_generation - h.predicted_demand
            if surplus < -2:
                shedding.append(h.id)
            elif surplus > 2:
                support.append(h.id)

        required = load_factor > LOAD_SHEDDING_THRESHOLD
        if required:
            self.logger.warning(
                f"Grid load factor {load_factor:.2f} above {LOAD_SHEDDING_THRESHOLD}, "
                f"{len(shedding)} shedding candidates"
            )

        return GridBalancing(
            supply_demand_ratio=ratio,
            grid_load_factor=load_factor,
            load_shedding_required=required,
            load_shedding_candidates=shedding,
            grid_support_providers=support,
            recommended_load_reduction=(load_factor - TARGET_LOAD_FACTOR) * demand if required else 0.0,
            total_generation=generation,
            total_demand=demand,
            total_battery_capacity=battery_capacity,
            total_stored_energy=stored,
        )
