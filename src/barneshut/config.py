"""
Simulation constants.

All tunables of a step live in one immutable SimulationConfig that is
passed to the simulator at construction, so different parameter sets
can run side by side.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .validation import (
    validate_leaf_capacity,
    validate_non_negative,
    validate_positive,
    validate_sector_precision,
)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Constants for one Barnes-Hut timestep.

    Attributes:
        sector_precision: Resolution of the sector grid (power of two)
        theta: Opening-angle threshold (0 = exact, higher = more approximation)
        elimination_threshold: Outlier distance as a fraction of the system size
        gee: Gravitational constant
        dt: Timestep
        leaf_capacity: Bodies a leaf holds before it is subdivided
        minimum_size: Leaves at or below this size are never subdivided
        min_distance: Sources closer than this contribute no force
    """

    sector_precision: int = 8
    theta: float = 0.5
    elimination_threshold: float = 0.5
    gee: float = 100.0
    dt: float = 0.01
    leaf_capacity: int = 1
    minimum_size: float = 0.00001
    min_distance: float = 1.0

    def __post_init__(self) -> None:
        validate_sector_precision(self.sector_precision)
        validate_non_negative("theta", self.theta)
        validate_non_negative("elimination_threshold", self.elimination_threshold)
        validate_positive("gee", self.gee)
        validate_positive("dt", self.dt)
        validate_leaf_capacity(self.leaf_capacity)
        validate_positive("minimum_size", self.minimum_size)
        validate_non_negative("min_distance", self.min_distance)

    def with_changes(self, **changes: Any) -> SimulationConfig:
        """Return a validated copy with some constants replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = SimulationConfig()


__all__ = ["SimulationConfig", "DEFAULT_CONFIG"]
