"""
Live simulation of a synthetic neighborhood fleet.
"""

from .clock import SimulationClock, average_distance, network_efficiency, time_parts
from .data import DEMO_HOUSEHOLDS, SimulationDataContext, demo_battery_level
from .registry import get_simulation_clock, registered_clocks, release_simulation_clock
from .weather import WeatherSimulator

__all__ = [
    "SimulationClock",
    "SimulationDataContext",
    "WeatherSimulator",
    "DEMO_HOUSEHOLDS",
    "demo_battery_level",
    "time_parts",
    "average_distance",
    "network_efficiency",
    "get_simulation_clock",
    "release_simulation_clock",
    "registered_clocks",
]
