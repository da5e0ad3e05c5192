"""
Diagnostics for simulated systems.

Provides quantitative measures of a body set and of the quadtree built
for it:
- Conserved quantities: total mass, center of mass, momentum
- Kinetic energy
- Exact direct-sum force, to measure the Barnes-Hut approximation error
- Tree shape: depth and node count

All functions work on any sequence of bodies, before or after a step.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .spatial.quad import Fork, Quad, walk
from .types import Body


def bodies_to_array(bodies: Sequence[Body]) -> np.ndarray:
    """
    Pack bodies into an ``(n, 5)`` array.

    Columns are mass, x, y, xspeed, yspeed.
    """
    if not bodies:
        return np.zeros((0, 5), dtype=float)
    return np.array([(b.mass, b.x, b.y, b.xspeed, b.yspeed) for b in bodies], dtype=float)


def total_mass(bodies: Sequence[Body]) -> float:
    """Sum of body masses."""
    return float(bodies_to_array(bodies)[:, 0].sum())


def center_of_mass(bodies: Sequence[Body]) -> Tuple[float, float]:
    """
    Mass-weighted centroid of the bodies.

    Returns:
        (x, y); (0.0, 0.0) for an empty sequence
    """
    arr = bodies_to_array(bodies)
    mass = arr[:, 0].sum()
    if mass == 0:
        return 0.0, 0.0
    return float(arr[:, 0] @ arr[:, 1] / mass), float(arr[:, 0] @ arr[:, 2] / mass)


def total_momentum(bodies: Sequence[Body]) -> Tuple[float, float]:
    """Vector sum of m * v."""
    arr = bodies_to_array(bodies)
    return float(arr[:, 0] @ arr[:, 3]), float(arr[:, 0] @ arr[:, 4])


def kinetic_energy(bodies: Sequence[Body]) -> float:
    """Sum of m * |v|^2 / 2."""
    arr = bodies_to_array(bodies)
    return float(0.5 * np.sum(arr[:, 0] * (arr[:, 3] ** 2 + arr[:, 4] ** 2)))


def direct_net_force(
    body: Body,
    bodies: Sequence[Body],
    gee: float = 100.0,
    min_distance: float = 1.0,
) -> Tuple[float, float]:
    """
    Exact net force on ``body`` by summing over every other body.

    Uses the same force law and distance floor as the tree walk, so it
    equals the Barnes-Hut force for ``theta = 0``.

    Time Complexity: O(n)
    """
    arr = bodies_to_array(bodies)
    if len(arr) == 0:
        return 0.0, 0.0
    dx = arr[:, 1] - body.x
    dy = arr[:, 2] - body.y
    dist = np.hypot(dx, dy)
    mask = dist > min_distance
    dist = dist[mask]
    force = gee * body.mass * arr[mask, 0] / (dist * dist)
    return float(np.sum(force * dx[mask] / dist)), float(np.sum(force * dy[mask] / dist))


def quad_depth(quad: Quad) -> int:
    """Number of levels in the tree (a lone Empty or Leaf has depth 1)."""
    if isinstance(quad, Fork):
        return 1 + max(quad_depth(child) for child in quad.children)
    return 1


def quad_node_count(quad: Quad) -> int:
    """Number of nodes of every variant in the tree."""
    return sum(1 for _ in walk(quad))


__all__ = [
    "bodies_to_array",
    "total_mass",
    "center_of_mass",
    "total_momentum",
    "kinetic_energy",
    "direct_net_force",
    "quad_depth",
    "quad_node_count",
]
