"""
Equitable access planning.

Scores each household's energy security, flags vulnerable ones and proposes
first-available greedy transfers from surplus households.
"""

from typing import Dict, List

from ..models import (
    AnalyzedHousehold,
    EquitableAccess,
    NetworkState,
    RedistributionAction,
    RedistributionPlan,
)
from .base import RuleBasedOptimizer

VULNERABILITY_THRESHOLD = 0.7
EMERGENCY_SHARE = 0.2
MIN_TRANSFER_KWH = 0.1


def security_ratio(household: AnalyzedHousehold) -> float:
    """Unclamped (generation + stored energy) / demand."""
    if household.predicted_demand <= 0:
        return 1.0
    return (household.predicted_generation + household.battery_kwh) / household.predicted_demand


def priority_level(ratio: float) -> str:
    if ratio < 0.3:
        return "critical"
    if ratio < 0.5:
        return "high"
    if ratio < 0.7:
        return "medium"
    return "low"


class EquitableAccessPlanner(RuleBasedOptimizer):
    """Fairness scoring and redistribution towards vulnerable households."""

    result_field = "equitable_access"

    def __init__(self):
        super().__init__("equity")

    def evaluate(self, state: NetworkState) -> EquitableAccess:
        return self.plan(state)

    def plan(self, state: NetworkState) -> EquitableAccess:
        households = state.households
        if not households:
            return EquitableAccess(
                average_energy_security=1.0,
                vulnerable_households=[],
                redistribution_plan=RedistributionPlan(),
                equity_score=1.0,
                emergency_support=False,
            )

        ratios = {h.id: security_ratio(h) for h in households}
        security = {hid: min(1.0, ratio) for hid, ratio in ratios.items()}
        vulnerable = [h for h in households if ratios[h.id] < VULNERABILITY_THRESHOLD]

        plan = self.redistribute(households, vulnerable, ratios)
        if plan.actions:
            self.logger.info(
                f"Redistribution plan: {len(plan.actions)} transfers, "
                f"{plan.total_redistributed:.2f} kWh to {plan.beneficiary_count} households"
            )

        return EquitableAccess(
            average_energy_security=sum(security.values()) / len(households),
            vulnerable_households=[h.id for h in vulnerable],
            redistribution_plan=plan,
            equity_score=1.0 - len(vulnerable) / len(households),
            emergency_support=len(vulnerable) > len(households) * EMERGENCY_SHARE,
            energy_security=security,
        )

    def redistribute(
        self,
        households: List[AnalyzedHousehold],
        vulnerable: List[AnalyzedHousehold],
        ratios: Dict[int, float]
    ) -> RedistributionPlan:
        """Greedy first-available allocation; donors are drawn down as they give."""
        donors = [
            h for h in households
            if h.predicted_generation + h.battery_kwh > h.predicted_demand * 1.2
        ]
        remaining = {
            d.id: d.predicted_generation + d.battery_kwh - d.predicted_demand
            for d in donors
        }

        actions = []
        for target in vulnerable:
            shortfall = target.predicted_demand - target.predicted_generation - target.battery_kwh
            if shortfall <= 0:
                continue

            donor = next(
                (d for d in donors if d.id != target.id and remaining[d.id] >= MIN_TRANSFER_KWH),
                None
            )
            if donor is None:
                continue

            amount = min(shortfall, remaining[donor.id])
            if amount < MIN_TRANSFER_KWH:
                continue

            remaining[donor.id] -= amount
            actions.append(RedistributionAction(
                from_household_id=donor.id,
                to_household_id=target.id,
                energy_amount=amount,
                transfer_type="immediate" if amount < 1 else "scheduled",
                priority=priority_level(ratios[target.id]),
            ))

        return RedistributionPlan(
            actions=actions,
            total_redistributed=sum(a.energy_amount for a in actions),
            beneficiary_count=len({a.to_household_id for a in actions}),
        )
