"""
Common types for the Barnes-Hut simulator.

This module provides the fundamental values passed between simulation phases:
- Body: Immutable point mass with position and velocity
- Boundaries: Axis-aligned bounding box accumulator over body positions
- EventType: Simulator lifecycle events
- Event: Event payload for callbacks
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Optional, TypedDict

from .validation import validate_body

if TYPE_CHECKING:
    from .config import SimulationConfig
    from .spatial.quad import Quad


class EventType(IntEnum):
    """
    Simulator lifecycle events.

    - start: A step has begun
    - phase: A pipeline phase has finished
    - end: A step has produced its new bodies
    """

    start = 0
    phase = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    step: int
    label: str
    elapsed: float
    body_count: int
    listener: Optional[Callable[[], None]]


@dataclass(frozen=True)
class Body:
    """
    A point mass with position and velocity.

    Bodies are values: a step never mutates a body, it replaces it
    with the successor returned by :meth:`updated`.

    Attributes:
        mass: Mass of the body (positive)
        x, y: Position
        xspeed, yspeed: Velocity
    """

    mass: float
    x: float
    y: float
    xspeed: float = 0.0
    yspeed: float = 0.0

    def __post_init__(self) -> None:
        validate_body(self.mass, self.x, self.y, self.xspeed, self.yspeed)

    def updated(self, quad: Quad, config: Optional[SimulationConfig] = None) -> Body:
        """
        Return the body after one timestep under the field of ``quad``.

        Args:
            quad: Quadtree approximating the mass distribution
            config: Simulation constants (defaults when omitted)

        Returns:
            New Body with integrated velocity and position
        """
        from .physics import update_body

        return update_body(self, quad, config)


@dataclass
class Boundaries:
    """
    Axis-aligned bounding box over body positions.

    A fresh instance is the identity of the min/max reduction, so it
    can seed a fold over any partition of the bodies.
    """

    min_x: float = math.inf
    min_y: float = math.inf
    max_x: float = -math.inf
    max_y: float = -math.inf

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def size(self) -> float:
        """Side of the square covering the box."""
        return max(self.width, self.height)

    @property
    def center_x(self) -> float:
        return self.min_x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.min_y + self.height / 2

    def is_empty(self) -> bool:
        """True if no position has been folded in yet."""
        return self.min_x > self.max_x or self.min_y > self.max_y

    def contains(self, x: float, y: float) -> bool:
        """Check if point (x, y) lies within the box (edges included)."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def __repr__(self) -> str:
        return (
            f"Boundaries(min_x={self.min_x}, min_y={self.min_y}, "
            f"max_x={self.max_x}, max_y={self.max_y})"
        )


__all__ = ["Body", "Boundaries", "Event", "EventType"]
