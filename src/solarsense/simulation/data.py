"""
Isolated simulation data store.

Households, readings and trades created here never touch externally
persisted data. Ids start at reserved offsets so they cannot collide with
real records, and readings/trades are trimmed to cap memory.
"""

import logging
import math
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..config import SimulationConfig
from ..models import EnergyReading, EnergyTrade, Household

# name, address, solar kW, battery kWh, battery %, hours since registration
DEMO_HOUSEHOLDS = [
    ("Solar Pioneers (Demo)", "Simulation District A", 5, 15, 15, 24),
    ("Green Energy Hub (Demo)", "Simulation District B", 8, 20, 95, 12),
    ("Community Center (Demo)", "Simulation Commercial Zone", 12, 40, 55, 6),
    ("Eco Apartments (Demo)", "Simulation District C", 3, 10, 25, 18),
    ("Smart Home Alpha (Demo)", "Simulation District A", 6, 18, 80, 3),
    ("Tech Innovation Center (Demo)", "Simulation Tech District", 10, 30, 40, 0.5),
    ("Residential Complex Beta (Demo)", "Simulation District D", 4, 12, 10, 2),
    ("Solar Farm Delta (Demo)", "Simulation Industrial Zone", 15, 50, 70, 8),
]

DEMO_USER_ID = 999


def demo_battery_level(household_id: int, base_level: float, hour: int) -> float:
    """Base level with a +/-15 point sinusoidal swing, kept within [5, 95]."""
    variation = math.sin((household_id + hour) * math.pi / 6) * 15
    return max(5.0, min(95.0, base_level + variation))


class SimulationDataContext:
    """Thread-safe store of synthetic households, readings and trades."""

    def __init__(self, config: Optional[SimulationConfig] = None, clock: Callable[[], datetime] = datetime.now):
        self.config = config or SimulationConfig()
        self.logger = logging.getLogger("solarsense.simulation.data")
        self._clock = clock
        self.lock = threading.RLock()
        self.reset()

    def reset(self) -> None:
        with self.lock:
            self._households: List[Household] = []
            self._readings: List[EnergyReading] = []
            self._trades: List[EnergyTrade] = []
            self._next_household_id = self.config.household_id_offset
            self._next_reading_id = self.config.reading_id_offset
            self._next_trade_id = self.config.trade_id_offset

    def initialize_demo_households(self) -> List[Household]:
        """Seed the fixed demo roster with time-dependent battery levels."""
        now = self._clock()
        with self.lock:
            self._households = []
            for name, address, solar, battery, level, hours_ago in DEMO_HOUSEHOLDS:
                household_id = self._next_household_id
                self._next_household_id += 1
                self._households.append(Household(
                    id=household_id,
                    name=name,
                    address=address,
                    solar_capacity=float(solar),
                    battery_capacity=float(battery),
                    battery_level=demo_battery_level(household_id, level, now.hour),
                    is_online=True,
                    user_id=DEMO_USER_ID,
                    created_at=now - timedelta(hours=hours_ago),
                ))
            self.logger.info(f"Seeded {len(self._households)} demo households")
            return list(self._households)

    def add_household(self, household: Household) -> Household:
        """Add a household under a reserved simulation id."""
        with self.lock:
            household.id = self._next_household_id
            self._next_household_id += 1
            self._households.append(household)
            return household

    @property
    def households(self) -> List[Household]:
        """Live household objects owned by the store."""
        with self.lock:
            return list(self._households)

    def snapshot(self) -> List[Household]:
        """Detached copies safe to hand to the optimization pipeline."""
        with self.lock:
            return [h.copy() for h in self._households]

    def get_household(self, household_id: int) -> Optional[Household]:
        with self.lock:
            return next((h for h in self._households if h.id == household_id), None)

    def update_household(self, household_id: int, **updates) -> bool:
        with self.lock:
            household = self.get_household(household_id)
            if household is None:
                return False
            for key, value in updates.items():
                setattr(household, key, value)
            return True

    def add_reading(
        self,
        household_id: int,
        solar_generation: float,
        energy_consumption: float,
        battery_level: float,
        weather_condition: str,
        temperature: float
    ) -> EnergyReading:
        with self.lock:
            reading = EnergyReading(
                id=self._next_reading_id,
                household_id=household_id,
                solar_generation=solar_generation,
                energy_consumption=energy_consumption,
                battery_level=battery_level,
                weather_condition=weather_condition,
                temperature=temperature,
                timestamp=self._clock(),
            )
            self._next_reading_id += 1
            self._readings.append(reading)

            if len(self._readings) > self.config.max_readings:
                self._readings = self._readings[-self.config.retained_readings:]
            return reading

    def add_trade(
        self,
        seller_household_id: int,
        buyer_household_id: int,
        energy_amount: float,
        price_per_kwh: float
    ) -> EnergyTrade:
        with self.lock:
            now = self._clock()
            trade = EnergyTrade(
                id=self._next_trade_id,
                seller_household_id=seller_household_id,
                buyer_household_id=buyer_household_id,
                energy_amount=energy_amount,
                price_per_kwh=price_per_kwh,
                created_at=now,
                completed_at=now,
            )
            self._next_trade_id += 1
            self._trades.append(trade)

            if len(self._trades) > self.config.max_trades:
                self._trades = self._trades[-self.config.retained_trades:]
            return trade

    @property
    def readings(self) -> List[EnergyReading]:
        with self.lock:
            return list(self._readings)

    @property
    def trades(self) -> List[EnergyTrade]:
        with self.lock:
            return list(self._trades)

    def recent_readings(self, limit: int = 100) -> List[EnergyReading]:
        with self.lock:
            return self._readings[-limit:] if limit > 0 else []

    def recent_trades(self, limit: int = 50) -> List[EnergyTrade]:
        with self.lock:
            return self._trades[-limit:] if limit > 0 else []
