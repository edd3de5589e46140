"""
Outage simulation: tracks offline households and assesses the impact.
"""

import logging
import threading
from typing import Iterable, List, Sequence, Set

from ..models import EmergencyRouting, Household, OutageResponse, RecoveryPlan

EMERGENCY_RESERVE_RATIO = 0.2
MAX_ROUTING_DISTANCE_KM = 10.0
RECOVERY_HOURS_PER_HOUSEHOLD = 0.5
CRITICAL_BATTERY_PERCENT = 20


def surviving_capacity(affected: Set[int], households: Sequence[Household]) -> float:
    """Rated solar capacity (kW) of households outside the outage."""
    return sum(h.solar_capacity or 0.0 for h in households if h.id not in affected)


def emergency_routing(capacity: float) -> EmergencyRouting:
    return EmergencyRouting(
        critical_loads_first=True,
        max_distance_km=MAX_ROUTING_DISTANCE_KM,
        emergency_reserve_ratio=EMERGENCY_RESERVE_RATIO,
        available_capacity=capacity * (1 - EMERGENCY_RESERVE_RATIO),
    )


def recovery_plan(affected: Set[int], households: Sequence[Household]) -> RecoveryPlan:
    critical = [
        h.id for h in households
        if h.id in affected and (h.battery_level or 0) < CRITICAL_BATTERY_PERCENT
    ]
    return RecoveryPlan(
        estimated_time=len(affected) * RECOVERY_HOURS_PER_HOUSEHOLD,
        priority_households=critical,
    )


def resilience_score(households: Sequence[Household], affected_count: int) -> float:
    """Weighted mix of solar prevalence, battery prevalence and outage impact."""
    size = len(households)
    if size == 0:
        return 0.5

    with_solar = sum(1 for h in households if (h.solar_capacity or 0) > 0)
    with_battery = sum(1 for h in households if (h.battery_capacity or 0) > 0)
    return (
        with_solar / size * 0.4
        + with_battery / size * 0.3
        + (1 - affected_count / size) * 0.3
    )


class OutageSimulator:
    """Owns the set of household ids currently taken offline."""

    def __init__(self):
        self.logger = logging.getLogger("solarsense.optimization.outage")
        self._active: Set[int] = set()
        self._lock = threading.Lock()

    @property
    def active_outages(self) -> List[int]:
        with self._lock:
            return sorted(self._active)

    def respond(self, affected_ids: Iterable[int], households: Sequence[Household]) -> OutageResponse:
        """Assess an outage of the given households without changing any state."""
        known = {h.id for h in households}
        affected = [hid for hid in dict.fromkeys(affected_ids) if hid in known]
        affected_set = set(affected)

        capacity = surviving_capacity(affected_set, households)
        plan = recovery_plan(affected_set, households)
        return OutageResponse(
            affected_household_ids=affected,
            surviving_capacity=capacity,
            emergency_routing=emergency_routing(capacity),
            estimated_recovery_time=plan.estimated_time,
            priority_allocation=plan.priority_households,
            community_resilience=resilience_score(households, len(affected)),
        )

    def trigger_outage(self, affected_ids: Iterable[int], households: Sequence[Household]) -> OutageResponse:
        """
        Take households offline and assess the impact.

        Unknown ids are ignored. Household objects in the given list have
        their online flag cleared.
        """
        response = self.respond(affected_ids, households)
        affected = set(response.affected_household_ids)

        with self._lock:
            self._active |= affected
        for h in households:
            if h.id in affected:
                h.is_online = False

        self.logger.warning(
            f"Outage triggered for {len(affected)} households, "
            f"resilience {response.community_resilience:.2f}"
        )
        return response

    def restore_power(self, household_ids: Iterable[int], households: Sequence[Household] = ()) -> List[int]:
        """Bring households back online; returns the ids actually restored."""
        ids = set(household_ids)
        with self._lock:
            restored = self._active & ids
            self._active -= restored
        for h in households:
            if h.id in ids:
                h.is_online = True

        if restored:
            self.logger.info(f"Power restored to {len(restored)} households")
        return sorted(restored)

    def clear(self) -> None:
        with self._lock:
            self._active.clear()
