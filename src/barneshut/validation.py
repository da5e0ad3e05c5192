"""
Input validation utilities for the Barnes-Hut simulator.

Provides centralized validation functions for bodies and simulation
parameters. Raises descriptive exceptions on invalid input.
"""

from __future__ import annotations

import math
from typing import Any


class ValidationError(ValueError):
    """Base exception for simulator validation errors."""

    pass


class InvalidConfigError(ValidationError):
    """Raised when a simulation parameter is out of range."""

    pass


class InvalidBodyError(ValidationError):
    """Raised when a body is malformed."""

    pass


class EmptySystemError(ValidationError):
    """Raised when a step is requested for an empty body sequence."""

    pass


class IncompatibleSectorMatrixError(ValidationError):
    """Raised when combining sector matrices with different geometry."""

    pass


class QuadInvariantError(RuntimeError):
    """Raised when a constructed quad violates its mass invariants."""

    pass


def validate_body(mass: float, x: float, y: float, xspeed: float, yspeed: float) -> None:
    """
    Validate the physical state of a body.

    Args:
        mass: Body mass
        x, y: Position
        xspeed, yspeed: Velocity

    Raises:
        InvalidBodyError: If mass is not positive or any value is not finite
    """
    if not math.isfinite(mass) or mass <= 0:
        raise InvalidBodyError(f"Body mass must be positive and finite, got {mass}")
    for name, value in (("x", x), ("y", y), ("xspeed", xspeed), ("yspeed", yspeed)):
        if not math.isfinite(value):
            raise InvalidBodyError(f"Body {name} must be finite, got {value}")


def validate_sector_precision(precision: int) -> int:
    """
    Validate the sector grid resolution.

    The quad build halves the grid span at each level, so the
    resolution must be a positive power of two.

    Raises:
        InvalidConfigError: If precision is not a positive power of two
    """
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise InvalidConfigError(f"sector_precision must be an int, got {precision!r}")
    if precision < 1 or precision & (precision - 1):
        raise InvalidConfigError(
            f"sector_precision must be a positive power of two, got {precision}"
        )
    return precision


def validate_positive(name: str, value: float) -> float:
    """
    Validate a strictly positive, finite parameter.

    Raises:
        InvalidConfigError: If value <= 0 or not finite
    """
    if not math.isfinite(value) or value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value}")
    return float(value)


def validate_non_negative(name: str, value: float) -> float:
    """
    Validate a non-negative, finite parameter.

    Raises:
        InvalidConfigError: If value < 0 or not finite
    """
    if not math.isfinite(value) or value < 0:
        raise InvalidConfigError(f"{name} must be >= 0, got {value}")
    return float(value)


def validate_leaf_capacity(capacity: int) -> int:
    """Validate that a leaf can hold at least one body."""
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise InvalidConfigError(f"leaf_capacity must be an int >= 1, got {capacity!r}")
    return capacity


def validate_parallelism(level: Any) -> int:
    """
    Validate a worker count.

    Raises:
        InvalidConfigError: If level is not an int >= 1
    """
    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        raise InvalidConfigError(f"parallelism level must be an int >= 1, got {level!r}")
    return level


__all__ = [
    "ValidationError",
    "InvalidConfigError",
    "InvalidBodyError",
    "EmptySystemError",
    "IncompatibleSectorMatrixError",
    "QuadInvariantError",
    "validate_body",
    "validate_sector_precision",
    "validate_positive",
    "validate_non_negative",
    "validate_leaf_capacity",
    "validate_parallelism",
]
