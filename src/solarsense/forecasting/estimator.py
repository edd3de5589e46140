"""
Small online-trained estimator used alongside the physical baseline.

A single hidden layer network (tanh hidden units, sigmoid output) that maps
normalized inputs in [-1, 1] to a value in (0, 1). It is trained one sample
at a time by plain gradient descent on squared error. Prediction and
training share a lock so a reader never sees a partially applied update.
"""

import threading
from typing import Optional, Sequence

import numpy as np


class OnlineEstimator:
    """Online estimator with a normalized (0, 1) output."""

    def __init__(
        self,
        n_inputs: int = 8,
        n_hidden: int = 5,
        learning_rate: float = 0.01,
        rng: Optional[np.random.RandomState] = None
    ):
        rng = rng or np.random.RandomState()
        self.n_inputs = n_inputs
        self.learning_rate = learning_rate
        self.w_hidden = rng.uniform(-1.0, 1.0, size=(n_inputs, n_hidden))
        self.b_hidden = np.zeros(n_hidden)
        self.w_output = rng.uniform(-1.0, 1.0, size=n_hidden)
        self.b_output = 0.0
        self.samples_seen = 0
        self._lock = threading.Lock()

    def _prepare(self, inputs: Sequence[float]) -> np.ndarray:
        x = np.asarray(inputs, dtype=float)
        if x.shape != (self.n_inputs,):
            raise ValueError(f"Expected {self.n_inputs} inputs, got shape {x.shape}")
        return np.clip(x, -1.0, 1.0)

    @staticmethod
    def _sigmoid(z: float) -> float:
        return float(1.0 / (1.0 + np.exp(-z)))

    def predict(self, inputs: Sequence[float]) -> float:
        x = self._prepare(inputs)
        with self._lock:
            hidden = np.tanh(x @ self.w_hidden + self.b_hidden)
            return self._sigmoid(hidden @ self.w_output + self.b_output)

    def train(self, inputs: Sequence[float], target: float) -> float:
        """One gradient step toward target; returns the pre-update error."""
        x = self._prepare(inputs)
        target = float(np.clip(target, 0.0, 1.0))

        with self._lock:
            hidden = np.tanh(x @ self.w_hidden + self.b_hidden)
            output = self._sigmoid(hidden @ self.w_output + self.b_output)
            error = output - target

            # d(loss)/d(pre-activation) for 0.5 * error^2 through the sigmoid
            delta_out = error * output * (1.0 - output)
            grad_w_output = delta_out * hidden
            delta_hidden = delta_out * self.w_output * (1.0 - hidden ** 2)

            self.w_output -= self.learning_rate * grad_w_output
            self.b_output -= self.learning_rate * delta_out
            self.w_hidden -= self.learning_rate * np.outer(x, delta_hidden)
            self.b_hidden -= self.learning_rate * delta_hidden
            self.samples_seen += 1

        return error
