"""
Process-wide registry of named simulation clocks.

The registry state lives in module globals that survive importlib.reload,
so reloading this module never orphans a ticking clock or creates a second
one under the same name.
"""

import logging
import threading
from typing import Dict, List, Optional

from ..config import EngineConfig
from .clock import SimulationClock

logger = logging.getLogger("solarsense.simulation.registry")

if "_clocks" not in globals():
    _clocks: Dict[str, SimulationClock] = {}
    _registry_lock = threading.Lock()


def get_simulation_clock(name: str = "default", config: Optional[EngineConfig] = None) -> SimulationClock:
    """Return the clock registered under name, creating it if absent.

    config only applies when the clock is created; a different config passed
    for an existing clock is ignored with a warning.
    """
    with _registry_lock:
        clock = _clocks.get(name)
        if clock is None:
            clock = SimulationClock(config=config, name=name)
            _clocks[name] = clock
            logger.info(f"Created simulation clock '{name}'")
        elif config is not None and config is not clock.config:
            logger.warning(
                f"Simulation clock '{name}' already exists, ignoring the supplied config; "
                f"release it first to apply a new one"
            )
        return clock


def release_simulation_clock(name: str = "default") -> bool:
    """Stop and forget a clock; returns False if none was registered."""
    with _registry_lock:
        clock = _clocks.pop(name, None)
    if clock is None:
        return False
    clock.stop()
    logger.info(f"Released simulation clock '{name}'")
    return True


def registered_clocks() -> List[str]:
    with _registry_lock:
        return sorted(_clocks)
