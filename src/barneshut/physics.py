"""
Newtonian gravity and the Barnes-Hut force query.

A body walks the quadtree: a Fork far enough away (size / distance <
theta) is treated as a single point mass at its center of mass, any
other Fork is opened and its children visited. Leaves contribute each
of their bodies directly.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from .config import DEFAULT_CONFIG, SimulationConfig
from .spatial.quad import Empty, Leaf, Quad
from .types import Body


def distance(x0: float, y0: float, x1: float, y1: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x1 - x0, y1 - y0)


def gravitational_force(gee: float, m1: float, m2: float, dist: float) -> float:
    """Magnitude of the attraction between two masses: G * m1 * m2 / d^2."""
    return gee * m1 * m2 / (dist * dist)


def net_force(
    body: Body,
    quad: Quad,
    theta: float = 0.5,
    gee: float = 100.0,
    min_distance: float = 1.0,
) -> Tuple[float, float]:
    """
    Approximate the net gravitational force acting on ``body``.

    Only Forks are ever collapsed to a point mass at their centroid. A
    Leaf is not: each of its bodies is applied individually, which also
    lets the distance floor drop the body's own entry.

    Args:
        body: Body the force acts on
        quad: Root of the quadtree
        theta: Opening-angle threshold (0 = always open forks)
        gee: Gravitational constant
        min_distance: Sources closer than this are ignored

    Returns:
        (fx, fy) force vector pointing toward the attracting masses
    """
    fx = 0.0
    fy = 0.0

    def add_force(mass: float, mass_x: float, mass_y: float) -> None:
        nonlocal fx, fy
        if mass <= 0:
            return
        dist = distance(body.x, body.y, mass_x, mass_y)
        # Also drops the body's own entry in its leaf
        if dist > min_distance:
            force = gravitational_force(gee, body.mass, mass, dist)
            fx += force * (mass_x - body.x) / dist
            fy += force * (mass_y - body.y) / dist

    stack = [quad]
    while stack:
        node = stack.pop()
        if isinstance(node, Empty):
            continue
        if isinstance(node, Leaf):
            for other in node.bodies:
                add_force(other.mass, other.x, other.y)
            continue
        # No division: a zero distance opens the fork
        dist = distance(body.x, body.y, node.mass_x, node.mass_y)
        if node.size < theta * dist:
            add_force(node.mass, node.mass_x, node.mass_y)
        else:
            stack.extend(node.children)

    return fx, fy


def update_body(body: Body, quad: Quad, config: Optional[SimulationConfig] = None) -> Body:
    """
    Integrate one timestep for ``body`` under the field of ``quad``.

    Velocity is advanced first (v += F / m * dt), then position with the
    new velocity (x += v * dt).

    Returns:
        New Body; the input is left untouched
    """
    if config is None:
        config = DEFAULT_CONFIG
    fx, fy = net_force(body, quad, config.theta, config.gee, config.min_distance)
    dt = config.dt
    xspeed = body.xspeed + fx / body.mass * dt
    yspeed = body.yspeed + fy / body.mass * dt
    return Body(
        mass=body.mass,
        x=body.x + xspeed * dt,
        y=body.y + yspeed * dt,
        xspeed=xspeed,
        yspeed=yspeed,
    )


__all__ = ["distance", "gravitational_force", "net_force", "update_body"]
