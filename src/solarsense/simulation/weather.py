"""Synthetic weather state for the simulation."""

import logging
import threading
from datetime import datetime
from typing import Any, Callable

from ..models import WeatherCondition, WeatherKind


class WeatherSimulator:
    """Holds the current weather snapshot; changes replace it wholesale."""

    def __init__(self, initial: Any = WeatherKind.SUNNY, clock: Callable[[], datetime] = datetime.now):
        self.logger = logging.getLogger("solarsense.simulation.weather")
        self._clock = clock
        self._lock = threading.Lock()
        self._current = WeatherCondition.for_condition(initial, hour=clock().hour)

    @property
    def current(self) -> WeatherCondition:
        with self._lock:
            return self._current

    def set_weather(self, condition: Any) -> WeatherCondition:
        """Replace the weather with the canonical snapshot for condition."""
        weather = WeatherCondition.for_condition(condition, hour=self._clock().hour)
        with self._lock:
            previous = self._current
            self._current = weather
        self.logger.info(
            f"Weather changed from {previous.condition.value} to {weather.condition.value} "
            f"({weather.temperature} °C)"
        )
        return weather
