"""Network state analysis: attach forecasts and support flags to a fleet."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from ..forecasting import ForecastModel
from ..models import AnalyzedHousehold, Household, NetworkState, WeatherCondition
from ..validation import validate_day_of_week, validate_hour


class NetworkStateAnalyzer:
    """Builds a NetworkState snapshot from a household list."""

    def __init__(self, forecast: Optional[ForecastModel] = None):
        self.forecast = forecast or ForecastModel()
        self.logger = logging.getLogger("solarsense.optimization.analyzer")

    def analyze(
        self,
        households: Iterable[Household],
        weather: WeatherCondition,
        hour: Optional[int] = None,
        day_of_week: Optional[int] = None,
        month: Optional[int] = None
    ) -> NetworkState:
        """
        Forecast every household and aggregate network totals.

        Args:
            households: Fleet to analyze (never modified)
            weather: Weather snapshot for the cycle
            hour: Hour of day, defaults to now
            day_of_week: 0 = Sunday, defaults to today
            month: 0 = January, defaults to the current month

        Returns:
            NetworkState with one AnalyzedHousehold per input household
        """
        now = datetime.now()
        hour = now.hour if hour is None else hour
        day_of_week = (now.weekday() + 1) % 7 if day_of_week is None else day_of_week
        month = now.month - 1 if month is None else month
        validate_hour(hour)
        validate_day_of_week(day_of_week)

        analyzed = []
        for household in households:
            generation = self.forecast.predict_generation(
                household, weather, hour, month=month, day_of_week=day_of_week
            )
            demand = self.forecast.predict_demand(household, hour, day_of_week, month=month)
            analyzed.append(AnalyzedHousehold.from_household(household, generation, demand))

        state = NetworkState(
            households=analyzed,
            total_generation=sum(h.predicted_generation for h in analyzed),
            total_demand=sum(h.predicted_demand for h in analyzed),
            weather=weather,
            hour=hour,
            day_of_week=day_of_week,
            month=month,
        )
        self.logger.debug(
            f"Analyzed {len(analyzed)} households: "
            f"generation {state.total_generation:.2f} kW, demand {state.total_demand:.2f} kW"
        )
        return state
