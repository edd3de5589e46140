"""
Forecasting package: pattern baselines blended with an online estimator.
"""

from .estimator import OnlineEstimator
from .learning import AccuracyTracker, LearningStore, RingBufferArena
from .model import ForecastModel, normalize_demand_inputs, normalize_generation_inputs
from .worker import TrainingJob, TrainingWorker

__all__ = [
    "ForecastModel",
    "OnlineEstimator",
    "LearningStore",
    "AccuracyTracker",
    "RingBufferArena",
    "TrainingJob",
    "TrainingWorker",
    "normalize_generation_inputs",
    "normalize_demand_inputs",
]
