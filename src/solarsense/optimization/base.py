"""
Base class for the rule-based network optimizers.

Every optimizer consumes an analyzed NetworkState and returns a new value;
none of them mutate the state they are given, so they can run concurrently
on different snapshots.
"""

from abc import ABC, abstractmethod
from typing import Any
import logging

from ..models import NetworkState


class RuleBasedOptimizer(ABC):
    """Stateless heuristic over an analyzed network snapshot.

    The optimization engine runs each rule through ``evaluate`` and stores
    its output on the result field named by ``result_field``.
    """

    result_field: str = ""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"solarsense.optimization.{name}")

    @abstractmethod
    def evaluate(self, state: NetworkState) -> Any:
        """Run the rule over a network snapshot."""
        pass
