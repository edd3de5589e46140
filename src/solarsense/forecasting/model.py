"""
Adaptive forecast model for household generation and demand.

Each prediction blends a deterministic pattern baseline with a small online
estimator. The estimator's share is capped and scaled by how accurate and
confident the model has been for that household, so the baseline dominates
until the estimator has earned trust. Training happens after the value is
returned, through the TrainingWorker queue.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from ..config import ForecastConfig
from ..models import Household, WeatherCondition
from . import patterns
from .estimator import OnlineEstimator
from .learning import DEMAND, GENERATION, KINDS, AccuracyTracker, LearningStore
from .worker import TrainingJob, TrainingWorker


def _clip(value: float) -> float:
    return max(-1.0, min(1.0, value))


def normalize_generation_inputs(
    weather: WeatherCondition,
    hour: int,
    solar_capacity: float,
    trend: float,
    month: int,
    day_of_week: int
) -> List[float]:
    """Map generation features to [-1, 1]."""
    return [
        _clip((weather.temperature - 25) / 25),  # 0-50 °C
        _clip((weather.cloud_cover - 50) / 50),  # 0-100 %
        _clip((weather.wind_speed - 15) / 15),  # 0-30 km/h
        _clip((hour - 12) / 12),
        _clip(solar_capacity / 20),  # 0-20 kW
        _clip(trend - 1),
        _clip(month / 6),
        _clip(day_of_week / 3),
    ]


def normalize_demand_inputs(
    household: Household,
    hour: int,
    day_of_week: int,
    month: int,
    trend: float,
    base_demand: float
) -> List[float]:
    """Map demand features to [-1, 1]."""
    night_factor = 0.7 if hour < 6 or hour > 22 else 1.0
    return [
        _clip((hour - 12) / 12),
        _clip((day_of_week - 3) / 3),
        _clip(month / 6),
        _clip((household.battery_capacity or 0) / 50),  # 0-50 kWh
        _clip((household.battery_level - 50) / 50),
        _clip(trend - 1),
        _clip(base_demand / 5),  # 0-5 kW
        _clip(night_factor * 2 - 1),
    ]


class ForecastModel:
    """Per-household generation and demand forecaster."""

    def __init__(self, config: Optional[ForecastConfig] = None):
        self.config = config or ForecastConfig()
        self.logger = logging.getLogger("solarsense.forecasting")

        rng = np.random.RandomState(self.config.random_seed)
        self.estimators = {
            GENERATION: OnlineEstimator(
                n_hidden=self.config.hidden_units,
                learning_rate=self.config.learning_rate,
                rng=rng
            ),
            DEMAND: OnlineEstimator(
                n_hidden=self.config.hidden_units,
                learning_rate=self.config.learning_rate,
                rng=rng
            ),
        }
        self._noise = rng
        self._train_lock = threading.Lock()

        self.learning = LearningStore(
            history_window=self.config.history_window,
            error_window=self.config.error_window,
            min_samples=self.config.min_trend_samples,
            default_confidence=self.config.default_confidence,
            default_accuracy=self.config.default_accuracy
        )
        self.accuracy = AccuracyTracker(
            window=self.config.accuracy_window,
            default_accuracy=self.config.default_accuracy
        )
        self.worker = TrainingWorker(self._train, maxsize=self.config.training_queue_size)

    # Training lifecycle

    def start_training(self) -> None:
        self.worker.start()

    def stop_training(self) -> None:
        self.worker.stop()

    def drain_training(self) -> int:
        """Run all pending training jobs synchronously."""
        return self.worker.drain()

    # Predictions

    def _blend_weight(self, household_id: int, kind: str, cap: float, scale: float) -> float:
        accuracy = self.learning.accuracy(household_id, kind)
        confidence = self.learning.confidence(household_id, kind)
        return min(cap, accuracy * confidence * scale)

    def _adaptation(self, household_id: int, kind: str) -> float:
        factor = self.learning.adaptation_factor(household_id, kind)
        return max(self.config.adaptation_min, min(self.config.adaptation_max, factor))

    def predict_generation(
        self,
        household: Household,
        weather: WeatherCondition,
        hour: int,
        month: Optional[int] = None,
        day_of_week: Optional[int] = None
    ) -> float:
        """
        Predict solar generation (kW) for the given hour.

        Args:
            household: Household to forecast
            weather: Current weather snapshot
            hour: Hour of day (0-23)
            month: Month index (0 = January), defaults to the current month
            day_of_week: Day index (0 = Sunday), defaults to today

        Returns:
            Non-negative generation, never above the weather-adjusted rating
            and zero outside daylight hours
        """
        now = datetime.now()
        month = now.month - 1 if month is None else month
        day_of_week = (now.weekday() + 1) % 7 if day_of_week is None else day_of_week

        capacity = household.solar_capacity or 0.0
        baseline = patterns.generation_baseline(household, weather, hour, month)
        if capacity <= 0:
            return max(0.0, baseline)

        trend = self.learning.trend(household.id, GENERATION)
        inputs = normalize_generation_inputs(weather, hour, capacity, trend, month, day_of_week)
        scale = capacity * 1.1
        estimate = self.estimators[GENERATION].predict(inputs) * scale

        weight = self._blend_weight(
            household.id, GENERATION, self.config.max_generation_weight, 0.5
        )
        prediction = baseline * (1 - weight) + estimate * weight
        prediction *= self._adaptation(household.id, GENERATION)

        limit = min(capacity * patterns.weather_multiplier(weather), capacity)
        if patterns.solar_time_multiplier(hour) <= 0:
            limit = 0.0
        prediction = max(0.0, min(prediction, limit))

        self.worker.submit(TrainingJob(
            household_id=household.id,
            kind=GENERATION,
            inputs=tuple(inputs),
            baseline=baseline,
            predicted=prediction,
            scale=scale
        ))
        return prediction

    def predict_demand(
        self,
        household: Household,
        hour: int,
        day_of_week: int,
        month: Optional[int] = None
    ) -> float:
        """
        Predict demand (kW) for the given hour and day.

        The result stays within [0.3, 3.0] times the household's base demand.
        """
        month = datetime.now().month - 1 if month is None else month

        base = patterns.base_demand(household)
        baseline = patterns.demand_baseline(household, hour, day_of_week, month)

        trend = self.learning.trend(household.id, DEMAND)
        inputs = normalize_demand_inputs(household, hour, day_of_week, month, trend, base)
        scale = base * 2.0
        estimate = self.estimators[DEMAND].predict(inputs) * scale

        weight = self._blend_weight(household.id, DEMAND, self.config.max_demand_weight, 0.4)
        prediction = baseline * (1 - weight) + estimate * weight
        prediction *= self._adaptation(household.id, DEMAND)
        prediction *= patterns.demand_variance(household, hour, day_of_week)

        prediction = max(base * 0.3, min(base * 3.0, prediction))
        prediction = max(0.1, prediction)

        self.worker.submit(TrainingJob(
            household_id=household.id,
            kind=DEMAND,
            inputs=tuple(inputs),
            baseline=baseline,
            predicted=prediction,
            scale=scale
        ))
        return prediction

    # Background training

    def _ground_truth(self, job: TrainingJob) -> float:
        """Baseline with independent measurement noise."""
        if job.kind == GENERATION:
            value = job.baseline * self._noise.uniform(0.97, 1.03) * self._noise.uniform(0.95, 1.03)
            return max(0.0, value)
        value = job.baseline * self._noise.uniform(0.98, 1.02) * self._noise.uniform(0.9, 1.1)
        return max(0.1, value)

    def _train(self, job: TrainingJob) -> None:
        with self._train_lock:
            actual = self._ground_truth(job)
            if job.scale <= 0:
                return

            target = min(1.0, max(0.0, actual / job.scale))
            self.estimators[job.kind].train(job.inputs, target)

        self.learning.record(job.household_id, job.kind, actual, job.predicted)
        self.accuracy.record(job.kind, job.household_id, actual, job.predicted)

    # Reporting

    def accuracy_report(self) -> Dict[str, Any]:
        """Accuracy and MAPE per forecast kind."""
        report = {}
        for kind in KINDS:
            report[kind] = {
                "accuracy": self.accuracy.accuracy(kind),
                "mape": self.accuracy.mape(kind),
                "samples_trained": self.estimators[kind].samples_seen,
            }
        report["pending_jobs"] = self.worker.pending
        return report
