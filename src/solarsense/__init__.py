"""SolarSense community energy market engine."""

from .config import EngineConfig
from .exceptions import SolarSenseError
from .forecasting import ForecastModel
from .models import Household, WeatherCondition, WeatherKind, OptimizationResult
from .optimization import OptimizationEngine
from .simulation import SimulationClock, get_simulation_clock, release_simulation_clock

# Import advanced modules
from . import optimization
from . import models

__version__ = "1.0.0"
__author__ = "SolarSense Development Team"
__license__ = "MIT"

__all__ = [
    "EngineConfig",
    "SolarSenseError",
    "ForecastModel",
    "Household",
    "WeatherCondition",
    "WeatherKind",
    "OptimizationResult",
    "OptimizationEngine",
    "SimulationClock",
    "get_simulation_clock",
    "release_simulation_clock",
    "optimization",
    "models"
]
