"""
Per-household learning state for the forecast model.

Samples live in fixed-capacity ring buffers packed into a shared numpy arena
(one row per key, plus a key -> row index), so memory per household is bounded
by the configured window sizes.
"""

import threading
from typing import Dict, Hashable, List, Optional

import numpy as np

GENERATION = "generation"
DEMAND = "demand"
KINDS = (GENERATION, DEMAND)


class RingBufferArena:
    """Fixed-capacity ring buffers keyed by arbitrary hashable keys."""

    def __init__(self, capacity: int, initial_rows: int = 16):
        if capacity <= 0:
            raise ValueError("Ring buffer capacity must be positive")
        self.capacity = capacity
        self._data = np.zeros((initial_rows, capacity))
        self._heads = np.zeros(initial_rows, dtype=int)
        self._counts = np.zeros(initial_rows, dtype=int)
        self._index: Dict[Hashable, int] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._index

    def keys(self) -> List[Hashable]:
        return list(self._index)

    def _row(self, key: Hashable) -> int:
        row = self._index.get(key)
        if row is not None:
            return row

        row = len(self._index)
        if row >= self._data.shape[0]:
            grow = self._data.shape[0]
            self._data = np.vstack([self._data, np.zeros((grow, self.capacity))])
            self._heads = np.concatenate([self._heads, np.zeros(grow, dtype=int)])
            self._counts = np.concatenate([self._counts, np.zeros(grow, dtype=int)])
        self._index[key] = row
        return row

    def append(self, key: Hashable, value: float) -> None:
        row = self._row(key)
        head = self._heads[row]
        self._data[row, head] = value
        self._heads[row] = (head + 1) % self.capacity
        self._counts[row] = min(self._counts[row] + 1, self.capacity)

    def count(self, key: Hashable) -> int:
        row = self._index.get(key)
        return 0 if row is None else int(self._counts[row])

    def values(self, key: Hashable) -> np.ndarray:
        """Samples for key in insertion order, oldest first."""
        row = self._index.get(key)
        if row is None:
            return np.empty(0)
        count = self._counts[row]
        if count < self.capacity:
            return self._data[row, :count].copy()
        return np.roll(self._data[row], -self._heads[row])


class LearningStore:
    """History, accuracy and error windows per (household, kind)."""

    def __init__(
        self,
        history_window: int = 100,
        error_window: int = 20,
        min_samples: int = 10,
        default_confidence: float = 0.75,
        default_accuracy: float = 0.75
    ):
        self.min_samples = min_samples
        self.default_confidence = default_confidence
        self.default_accuracy = default_accuracy
        self._history = RingBufferArena(history_window)
        self._accuracy = RingBufferArena(history_window)
        self._errors = RingBufferArena(error_window)
        self._lock = threading.RLock()

    @staticmethod
    def relative_error(actual: float, predicted: float) -> float:
        return abs(actual - predicted) / max(actual, 0.1)

    def record(self, household_id: int, kind: str, actual: float, predicted: float) -> None:
        """Store an actual value and the error of the prediction made for it."""
        key = (household_id, kind)
        error = self.relative_error(actual, predicted)
        with self._lock:
            self._history.append(key, actual)
            self._accuracy.append(key, min(1.0, max(0.0, 1.0 - error)))
            self._errors.append(key, error)

    def sample_count(self, household_id: int, kind: str) -> int:
        with self._lock:
            return self._history.count((household_id, kind))

    def history(self, household_id: int, kind: str) -> np.ndarray:
        with self._lock:
            return self._history.values((household_id, kind))

    def trend(self, household_id: int, kind: str) -> float:
        """Ratio of the last 5 samples' mean to the 5 before them."""
        data = self.history(household_id, kind)
        if len(data) < self.min_samples:
            return 1.0

        recent = data[-5:].mean()
        older = data[-10:-5].mean()
        return 1.0 if older == 0 else float(recent / older)

    def accuracy(self, household_id: int, kind: str) -> float:
        with self._lock:
            values = self._accuracy.values((household_id, kind))
        return float(values.mean()) if len(values) else self.default_accuracy

    def confidence(self, household_id: int, kind: str) -> float:
        with self._lock:
            errors = self._errors.values((household_id, kind))
        if len(errors) < self.min_samples:
            return self.default_confidence
        return max(0.1, 1.0 - float(errors.mean()))

    def adaptation_factor(self, household_id: int, kind: str) -> float:
        """Correction in [0.8, 1.5] following the recent error trend."""
        with self._lock:
            errors = self._errors.values((household_id, kind))
        if len(errors) < self.min_samples:
            return 1.0

        recent = float(errors[-5:].mean())
        earlier = float(errors[-10:-5].mean())
        if recent > earlier:
            return min(1.5, 1.0 + (recent - earlier))
        return max(0.8, 1.0 - (earlier - recent))


class AccuracyTracker:
    """Recent actual/predicted pairs for reporting accuracy and MAPE."""

    def __init__(self, window: int = 50, default_accuracy: float = 0.75, default_mape: float = 15.0):
        self.default_accuracy = default_accuracy
        self.default_mape = default_mape
        self._actual = RingBufferArena(window)
        self._predicted = RingBufferArena(window)
        self._lock = threading.RLock()

    def record(self, kind: str, household_id: int, actual: float, predicted: float) -> None:
        key = (kind, household_id)
        with self._lock:
            self._actual.append(key, actual)
            self._predicted.append(key, predicted)

    def _pairs(self, kind: str, household_id: Optional[int] = None):
        with self._lock:
            if household_id is not None:
                keys = [(kind, household_id)] if (kind, household_id) in self._actual else []
            else:
                keys = [k for k in self._actual.keys() if k[0] == kind]
            actual = [self._actual.values(k) for k in keys]
            predicted = [self._predicted.values(k) for k in keys]

        if not actual:
            return np.empty(0), np.empty(0)
        return np.concatenate(actual), np.concatenate(predicted)

    def accuracy(self, kind: str, household_id: Optional[int] = None) -> float:
        actual, predicted = self._pairs(kind, household_id)
        if len(actual) == 0:
            return self.default_accuracy

        errors = np.minimum(1.0, np.abs(actual - predicted) / np.maximum(actual, 0.1))
        return max(0.0, 1.0 - float(errors.mean()))

    def mape(self, kind: str) -> float:
        """Mean absolute percentage error over samples with a positive actual."""
        actual, predicted = self._pairs(kind)
        mask = actual > 0
        if not mask.any():
            return self.default_mape

        return float((np.abs(actual[mask] - predicted[mask]) / actual[mask]).mean() * 100)
