"""
Configuration package for the SolarSense engine.
Provides hierarchical and validatable configuration management.
"""

from .base import (
    BaseConfig,
    ConfigFormat,
    ValidationLevel,
    ConfigValidationResult
)

from .engine_config import (
    ForecastConfig,
    MatchingConfig,
    MarketConfig,
    SimulationConfig,
    MonitoringConfig,
    EngineConfig
)

__all__ = [
    # Base configuration classes
    "BaseConfig",
    "ConfigFormat",
    "ValidationLevel",
    "ConfigValidationResult",

    # Engine configuration sections
    "ForecastConfig",
    "MatchingConfig",
    "MarketConfig",
    "SimulationConfig",
    "MonitoringConfig",

    # Main configuration class
    "EngineConfig"
]
