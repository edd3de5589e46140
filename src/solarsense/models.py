"""Data models for the SolarSense energy engine."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import UnknownWeatherConditionError
from .validation import HouseholdValidator, WeatherValidator


class WeatherKind(str, Enum):
    """Enumerated sky conditions, from clearest to worst."""
    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly-cloudy"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"
    RAINY = "rainy"
    STORMY = "stormy"

    @classmethod
    def parse(cls, value: Any) -> "WeatherKind":
        """Accept an enum member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise UnknownWeatherConditionError(
                f"Unknown weather condition '{value}'. Must be one of: {valid}"
            )


# Canonical per-condition snapshot values
_BASE_TEMPERATURE = {
    WeatherKind.SUNNY: 28,
    WeatherKind.PARTLY_CLOUDY: 25,
    WeatherKind.CLOUDY: 22,
    WeatherKind.OVERCAST: 20,
    WeatherKind.RAINY: 18,
    WeatherKind.STORMY: 16,
}
_CLOUD_COVER = {
    WeatherKind.SUNNY: 10,
    WeatherKind.PARTLY_CLOUDY: 40,
    WeatherKind.CLOUDY: 80,
    WeatherKind.OVERCAST: 95,
    WeatherKind.RAINY: 100,
    WeatherKind.STORMY: 100,
}
_WIND_SPEED = {
    WeatherKind.SUNNY: 8,
    WeatherKind.PARTLY_CLOUDY: 12,
    WeatherKind.CLOUDY: 15,
    WeatherKind.OVERCAST: 18,
    WeatherKind.RAINY: 22,
    WeatherKind.STORMY: 35,
}
_SOLAR_EFFICIENCY = {
    WeatherKind.SUNNY: 0.95,
    WeatherKind.PARTLY_CLOUDY: 0.75,
    WeatherKind.CLOUDY: 0.45,
    WeatherKind.OVERCAST: 0.25,
    WeatherKind.RAINY: 0.15,
    WeatherKind.STORMY: 0.05,
}


@dataclass(frozen=True)
class WeatherCondition:
    """Immutable weather snapshot."""
    condition: WeatherKind
    temperature: float  # °C
    cloud_cover: float  # percent
    wind_speed: float  # km/h
    solar_efficiency: float  # 0-1

    def __post_init__(self):
        WeatherValidator.validate_temperature(self.temperature)
        WeatherValidator.validate_cloud_cover(self.cloud_cover)
        WeatherValidator.validate_wind_speed(self.wind_speed)

    @classmethod
    def for_condition(cls, condition: Any, hour: int = 12) -> "WeatherCondition":
        """Build the canonical snapshot for a condition at a given hour.

        Temperature follows a daily swing of +/-3 °C peaking at noon.
        """
        kind = WeatherKind.parse(condition)
        daily_variation = math.sin((hour - 6) / 12 * math.pi) * 3
        temperature = round(_BASE_TEMPERATURE[kind] + daily_variation)
        return cls(
            condition=kind,
            temperature=temperature,
            cloud_cover=_CLOUD_COVER[kind],
            wind_speed=_WIND_SPEED[kind],
            solar_efficiency=_SOLAR_EFFICIENCY[kind],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "condition": self.condition.value,
            "temperature": self.temperature,
            "cloud_cover": self.cloud_cover,
            "wind_speed": self.wind_speed,
            "solar_efficiency": self.solar_efficiency,
        }


@dataclass
class Household:
    """A residential or commercial unit with solar and battery storage."""
    id: int
    name: str = ""
    solar_capacity: float = 0.0  # kW
    battery_capacity: float = 0.0  # kWh
    battery_level: float = 0.0  # percent of capacity
    is_online: bool = True
    address: str = ""
    user_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def battery_kwh(self) -> float:
        """Stored energy in kWh."""
        return self.battery_level * self.battery_capacity / 100

    def copy(self) -> "Household":
        return replace(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Household":
        """Create a household from an externally supplied roster record."""
        HouseholdValidator.validate_record(record)
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            solar_capacity=float(record.get("solar_capacity") or 0.0),
            battery_capacity=float(record.get("battery_capacity") or 0.0),
            battery_level=float(record.get("battery_level") or 0.0),
            is_online=record.get("is_online", True) is not False,
            address=record.get("address") or "",
            user_id=record.get("user_id"),
            created_at=record.get("created_at") or datetime.now(),
        )


@dataclass(frozen=True)
class AnalyzedHousehold:
    """Household snapshot enriched with forecasts and derived flags."""
    id: int
    name: str
    address: str
    solar_capacity: float
    battery_capacity: float
    battery_level: float  # percent
    is_online: bool
    predicted_generation: float  # kW
    predicted_demand: float  # kW
    net_balance: float  # kW
    battery_kwh: float
    can_support: bool
    needs_support: bool

    @property
    def battery_ratio(self) -> float:
        """Fill ratio used for urgency ordering."""
        return self.battery_kwh / max(self.battery_capacity, 1.0)

    @classmethod
    def from_household(
        cls,
        household: Household,
        predicted_generation: float,
        predicted_demand: float
    ) -> "AnalyzedHousehold":
        capacity = household.battery_capacity or 0.0
        battery_kwh = household.battery_kwh
        return cls(
            id=household.id,
            name=household.name,
            address=household.address,
            solar_capacity=household.solar_capacity or 0.0,
            battery_capacity=capacity,
            battery_level=household.battery_level or 0.0,
            is_online=household.is_online,
            predicted_generation=predicted_generation,
            predicted_demand=predicted_demand,
            net_balance=predicted_generation - predicted_demand,
            battery_kwh=battery_kwh,
            can_support=(
                predicted_generation > predicted_demand * 1.1
                or (capacity > 0 and battery_kwh >= 0.8 * capacity)
            ),
            needs_support=(
                predicted_generation < predicted_demand * 0.9
                or battery_kwh < 0.3 * capacity
            ),
        )


@dataclass(frozen=True)
class NetworkState:
    """Per-cycle view of the whole network."""
    households: List[AnalyzedHousehold]
    total_generation: float
    total_demand: float
    weather: WeatherCondition
    hour: int
    day_of_week: int
    month: int
    timestamp: datetime = field(default_factory=datetime.now)


class Priority(str, Enum):
    """Trade priority tier."""
    NORMAL = "normal"
    HIGH = "high"
    EMERGENCY = "emergency"


@dataclass(frozen=True)
class TradingPair:
    """Proposed transfer from one supplier to one demander for a cycle."""
    supplier_id: int
    demander_id: int
    energy_amount: float  # kWh
    distance: float  # km
    priority: Priority = Priority.NORMAL


class BatteryAction(str, Enum):
    """Per-cycle battery decision."""
    CHARGE = "charge"
    DISCHARGE = "discharge"
    SELL = "sell"
    BUY = "buy"


@dataclass
class BatteryStrategy:
    """Battery action per household id."""
    strategies: Dict[int, BatteryAction] = field(default_factory=dict)

    def action_for(self, household_id: int) -> Optional[BatteryAction]:
        return self.strategies.get(household_id)


@dataclass
class GridBalancing:
    """Network-wide load balance and shedding candidates."""
    supply_demand_ratio: float
    grid_load_factor: float
    load_shedding_required: bool
    load_shedding_candidates: List[int] = field(default_factory=list)
    grid_support_providers: List[int] = field(default_factory=list)
    recommended_load_reduction: float = 0.0
    total_generation: float = 0.0
    total_demand: float = 0.0
    total_battery_capacity: float = 0.0
    total_stored_energy: float = 0.0


@dataclass
class LoadShiftingStrategy:
    """Load that can be moved out of the current hour."""
    shiftable_load: float  # kW
    optimal_shift_time: int  # hour of day
    potential_savings: float  # kW


@dataclass
class LoadManagement:
    """Priority/deferrable loads and shifting opportunities."""
    priority_loads: Dict[int, List[str]] = field(default_factory=dict)
    deferrable_loads: Dict[int, List[str]] = field(default_factory=dict)
    load_shifting_opportunities: Dict[int, LoadShiftingStrategy] = field(default_factory=dict)
    peak_demand_reduction: float = 0.0


@dataclass(frozen=True)
class RedistributionAction:
    """Single energy transfer towards a vulnerable household."""
    from_household_id: int
    to_household_id: int
    energy_amount: float  # kWh
    transfer_type: str  # immediate, scheduled
    priority: str  # critical, high, medium, low


@dataclass
class RedistributionPlan:
    actions: List[RedistributionAction] = field(default_factory=list)
    total_redistributed: float = 0.0
    beneficiary_count: int = 0


@dataclass
class EquitableAccess:
    """Fairness assessment of the network."""
    average_energy_security: float
    vulnerable_households: List[int]
    redistribution_plan: RedistributionPlan
    equity_score: float
    emergency_support: bool
    energy_security: Dict[int, float] = field(default_factory=dict)


@dataclass
class EmergencyRouting:
    critical_loads_first: bool = True
    max_distance_km: float = 10.0
    emergency_reserve_ratio: float = 0.2
    available_capacity: float = 0.0  # kW


@dataclass
class RecoveryPlan:
    estimated_time: float  # hours
    priority_households: List[int] = field(default_factory=list)
    phase_approach: str = "critical-first"


@dataclass
class OutageResponse:
    """Assessment of a simulated outage."""
    affected_household_ids: List[int]
    surviving_capacity: float  # kW
    emergency_routing: EmergencyRouting
    estimated_recovery_time: float  # hours
    priority_allocation: List[int]
    community_resilience: float


@dataclass
class OptimizationResult:
    """Bundle produced by one optimization cycle."""
    trading_pairs: List[TradingPair] = field(default_factory=list)
    prices: Dict[int, int] = field(default_factory=dict)
    pair_prices: List[int] = field(default_factory=list)
    battery_strategy: BatteryStrategy = field(default_factory=BatteryStrategy)
    grid_stability: float = 1.0
    recommendations: List[str] = field(default_factory=list)
    grid_balancing: Optional[GridBalancing] = None
    load_management: Optional[LoadManagement] = None
    equitable_access: Optional[EquitableAccess] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class EnergyReading:
    """Synthetic meter reading recorded by the simulation."""
    id: int
    household_id: int
    solar_generation: float  # kWh
    energy_consumption: float  # kWh
    battery_level: float  # percent
    weather_condition: str
    temperature: float
    timestamp: datetime


@dataclass(frozen=True)
class EnergyTrade:
    """Completed simulated trade."""
    id: int
    seller_household_id: int
    buyer_household_id: int
    energy_amount: float  # kWh
    price_per_kwh: float
    trade_type: str = "surplus_sale"
    status: str = "completed"
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None


@dataclass
class NetworkStats:
    """Live aggregate statistics of the simulated network."""
    total_households: int
    active_connections: int
    total_generation: float
    total_consumption: float
    battery_storage_total: float
    current_battery_level: float
    trading_velocity: float
    carbon_reduction: float
    average_price: float
    average_distance: float
    network_efficiency: float


@dataclass
class EquityAnalysis:
    equity_score: float
    average_energy_security: float
    vulnerable_count: int
    vulnerable_households: List[int] = field(default_factory=list)
    emergency_support: bool = False


@dataclass
class SimulationStatus:
    running: bool
    weather: WeatherCondition
    active_outage_ids: List[int]
    network_stats: NetworkStats
