"""
Main engine configuration that integrates all configuration sections.
"""

from dataclasses import dataclass, field, fields, asdict
from typing import Dict, Any, Optional, Type, TypeVar
import logging

from .base import BaseConfig, ConfigValidationResult

T = TypeVar("T")


def _section_from_dict(section_cls: Type[T], data: Optional[Dict[str, Any]]) -> T:
    """Build a section dataclass, ignoring unknown keys."""
    data = data or {}
    known = {f.name for f in fields(section_cls)}
    return section_cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ForecastConfig:
    """Configuration for the adaptive forecast model."""
    history_window: int = 100
    error_window: int = 20
    accuracy_window: int = 50
    min_trend_samples: int = 10
    default_confidence: float = 0.75
    default_accuracy: float = 0.75
    max_generation_weight: float = 0.25
    max_demand_weight: float = 0.20
    adaptation_min: float = 0.9
    adaptation_max: float = 1.1
    learning_rate: float = 0.01
    hidden_units: int = 5
    training_queue_size: int = 10000
    random_seed: Optional[int] = None

    def validate(self) -> ConfigValidationResult:
        """Validate forecast configuration."""
        result = ConfigValidationResult(is_valid=True)

        for name in ("history_window", "error_window", "accuracy_window",
                     "min_trend_samples", "hidden_units", "training_queue_size"):
            if getattr(self, name) <= 0:
                result.add_error(f"{name} must be > 0, got {getattr(self, name)}")

        if self.min_trend_samples > self.history_window:
            result.add_error("min_trend_samples cannot exceed history_window")

        for name in ("max_generation_weight", "max_demand_weight",
                     "default_confidence", "default_accuracy"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                result.add_error(f"{name} must be between 0 and 1, got {value}")

        if not 0 < self.adaptation_min <= 1 <= self.adaptation_max:
            result.add_error(
                f"Adaptation bounds must satisfy 0 < min <= 1 <= max, "
                f"got [{self.adaptation_min}, {self.adaptation_max}]"
            )

        if self.learning_rate <= 0:
            result.add_error(f"Learning rate must be > 0, got {self.learning_rate}")
        elif self.learning_rate > 0.5:
            result.add_warning(f"Learning rate {self.learning_rate} is unusually high")

        return result


@dataclass
class MatchingConfig:
    """Thresholds for supplier/demander matching."""
    min_trade_kwh: float = 0.3
    max_trade_kwh: float = 3.0
    min_supplier_kwh: float = 0.5
    battery_reserve_ratio: float = 0.2
    target_battery_ratio: float = 0.6

    def validate(self) -> ConfigValidationResult:
        """Validate matching configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.min_trade_kwh <= 0:
            result.add_error(f"Minimum trade must be > 0, got {self.min_trade_kwh}")

        if self.max_trade_kwh < self.min_trade_kwh:
            result.add_error("Maximum trade must be >= minimum trade")

        if self.min_supplier_kwh < self.min_trade_kwh:
            result.add_warning("Supplier entry threshold is below the minimum trade size")

        for name in ("battery_reserve_ratio", "target_battery_ratio"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                result.add_error(f"{name} must be between 0 and 1, got {value}")

        return result


@dataclass
class MarketConfig:
    """Time-of-use tariff and clearing bounds (currency per kWh)."""
    peak_rate: float = 8.0
    morning_peak_rate: float = 6.0
    day_rate: float = 5.0
    off_peak_rate: float = 3.0
    max_transmission_surcharge: float = 0.5
    renewable_discount: float = 0.2
    price_floor: int = 3
    price_ceiling: int = 100
    currency: str = "INR"

    def validate(self) -> ConfigValidationResult:
        """Validate market configuration."""
        result = ConfigValidationResult(is_valid=True)

        for name in ("peak_rate", "morning_peak_rate", "day_rate", "off_peak_rate"):
            if getattr(self, name) <= 0:
                result.add_error(f"{name} must be > 0, got {getattr(self, name)}")

        if self.price_floor < 0:
            result.add_error(f"Price floor must be >= 0, got {self.price_floor}")

        if self.price_ceiling < self.price_floor:
            result.add_error(
                f"Price ceiling {self.price_ceiling} is below floor {self.price_floor}"
            )

        if self.max_transmission_surcharge < 0:
            result.add_error("Transmission surcharge cap must be >= 0")

        return result


@dataclass
class SimulationConfig:
    """Configuration for the simulation clock and its isolated store."""
    tick_interval_seconds: float = 10.0
    charge_rate_kwh: float = 2.0
    discharge_rate_kwh: float = 1.5
    household_id_offset: int = 1000
    reading_id_offset: int = 10000
    trade_id_offset: int = 10000
    max_readings: int = 1000
    retained_readings: int = 500
    max_trades: int = 500
    retained_trades: int = 250
    default_outage_fraction: float = 0.25
    initial_weather: str = "sunny"

    def validate(self) -> ConfigValidationResult:
        """Validate simulation configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.tick_interval_seconds <= 0:
            result.add_error(f"Tick interval must be > 0, got {self.tick_interval_seconds}")

        if self.charge_rate_kwh < 0 or self.discharge_rate_kwh < 0:
            result.add_error("Charge and discharge rates must be >= 0")

        if self.retained_readings > self.max_readings:
            result.add_error("Retained readings cannot exceed max readings")

        if self.retained_trades > self.max_trades:
            result.add_error("Retained trades cannot exceed max trades")

        if not 0 < self.default_outage_fraction <= 1:
            result.add_error(
                f"Outage fraction must be in (0, 1], got {self.default_outage_fraction}"
            )

        return result


@dataclass
class MonitoringConfig:
    """Configuration for logging."""
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> ConfigValidationResult:
        """Validate monitoring configuration."""
        result = ConfigValidationResult(is_valid=True)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            result.add_error(f"Invalid log level: {self.log_level}")

        return result


@dataclass
class EngineConfig(BaseConfig):
    """Main engine configuration class."""

    name: str = "SolarSense Community Grid"
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    config_version: str = "1.0"

    def __post_init__(self):
        """Initialize after dataclass creation."""
        super().__init__()
        self._setup_logging()

    def _setup_logging(self):
        """Setup logging based on monitoring configuration."""
        logger = logging.getLogger("solarsense")
        level = getattr(logging, self.monitoring.log_level, logging.INFO)
        logger.setLevel(level)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Console handler
        if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        # File handler if specified
        if self.monitoring.log_file:
            known = {
                getattr(h, "baseFilename", None) for h in logger.handlers
            }
            file_handler = logging.FileHandler(self.monitoring.log_file)
            if file_handler.baseFilename in known:
                file_handler.close()
            else:
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)

    def validate(self) -> ConfigValidationResult:
        """Validate the entire engine configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.name:
            result.add_error("Engine name cannot be empty")

        components = [
            ("forecast", self.forecast),
            ("matching", self.matching),
            ("market", self.market),
            ("simulation", self.simulation),
            ("monitoring", self.monitoring),
        ]

        for component_name, component in components:
            result.extend(component.validate(), prefix=f"{component_name}: ")

        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "forecast": asdict(self.forecast),
            "matching": asdict(self.matching),
            "market": asdict(self.market),
            "simulation": asdict(self.simulation),
            "monitoring": asdict(self.monitoring),
            "config_version": self.config_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """Create from dictionary."""
        return cls(
            name=data.get("name", "SolarSense Community Grid"),
            forecast=_section_from_dict(ForecastConfig, data.get("forecast")),
            matching=_section_from_dict(MatchingConfig, data.get("matching")),
            market=_section_from_dict(MarketConfig, data.get("market")),
            simulation=_section_from_dict(SimulationConfig, data.get("simulation")),
            monitoring=_section_from_dict(MonitoringConfig, data.get("monitoring")),
            config_version=data.get("config_version", "1.0"),
        )
