"""
Quadtree of aggregated mass for Barnes-Hut force approximation.

A quad is one of three variants:

- Empty: a region holding no bodies
- Leaf: a region holding a small set of bodies
- Fork: a region split into four equal quadrants (nw, ne, sw, se)

Every node exposes its region (center_x, center_y, size) and the
aggregated mass, center of mass (mass_x, mass_y) and body count (total)
of everything below it. Nodes are immutable: inserting a body returns a
new quad, so aggregates are always consistent with the children.

The y axis grows downward, so "north" is the half with the smaller y.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Tuple, Union

from ..validation import QuadInvariantError

if TYPE_CHECKING:
    from ..types import Body


@dataclass(frozen=True)
class Empty:
    """A region with no bodies; its center of mass is its geometric center."""

    center_x: float
    center_y: float
    size: float

    @property
    def mass(self) -> float:
        return 0.0

    @property
    def mass_x(self) -> float:
        return self.center_x

    @property
    def mass_y(self) -> float:
        return self.center_y

    @property
    def total(self) -> int:
        return 0


@dataclass(frozen=True)
class Leaf:
    """
    A region holding bodies directly.

    Attributes:
        center_x, center_y: Center of the region
        size: Side length of the region
        bodies: Bodies stored in this leaf
        mass: Sum of body masses
        mass_x, mass_y: Mass-weighted centroid of the bodies
        total: Number of bodies
    """

    center_x: float
    center_y: float
    size: float
    bodies: Tuple[Body, ...]
    mass: float = field(init=False)
    mass_x: float = field(init=False)
    mass_y: float = field(init=False)
    total: int = field(init=False)

    def __post_init__(self) -> None:
        bodies = tuple(self.bodies)
        # fsum keeps the aggregate independent of body order
        mass = math.fsum(b.mass for b in bodies)
        _check_mass(mass, "Leaf")
        if mass > 0:
            mass_x = math.fsum(b.mass * b.x for b in bodies) / mass
            mass_y = math.fsum(b.mass * b.y for b in bodies) / mass
        else:
            mass_x, mass_y = self.center_x, self.center_y

        object.__setattr__(self, "bodies", bodies)
        object.__setattr__(self, "mass", mass)
        object.__setattr__(self, "mass_x", mass_x)
        object.__setattr__(self, "mass_y", mass_y)
        object.__setattr__(self, "total", len(bodies))


@dataclass(frozen=True)
class Fork:
    """
    A region split into four equal quadrants.

    The region of the fork is derived from its children: the children
    must all have the same size and tile the fork without gap or overlap.
    """

    nw: Quad
    ne: Quad
    sw: Quad
    se: Quad
    center_x: float = field(init=False)
    center_y: float = field(init=False)
    size: float = field(init=False)
    mass: float = field(init=False)
    mass_x: float = field(init=False)
    mass_y: float = field(init=False)
    total: int = field(init=False)

    def __post_init__(self) -> None:
        children = self.children
        child_size = self.nw.size
        if any(not math.isclose(c.size, child_size, rel_tol=1e-9, abs_tol=1e-12) for c in children):
            raise QuadInvariantError(
                f"Fork children must have equal sizes, got {[c.size for c in children]}"
            )

        center_x = self.nw.center_x + child_size / 2
        center_y = self.nw.center_y + child_size / 2
        mass = sum(c.mass for c in children)
        _check_mass(mass, "Fork")
        if mass > 0:
            mass_x = sum(c.mass * c.mass_x for c in children) / mass
            mass_y = sum(c.mass * c.mass_y for c in children) / mass
        else:
            mass_x, mass_y = center_x, center_y

        object.__setattr__(self, "center_x", center_x)
        object.__setattr__(self, "center_y", center_y)
        object.__setattr__(self, "size", child_size * 2)
        object.__setattr__(self, "mass", mass)
        object.__setattr__(self, "mass_x", mass_x)
        object.__setattr__(self, "mass_y", mass_y)
        object.__setattr__(self, "total", sum(c.total for c in children))

    @property
    def children(self) -> Tuple[Quad, Quad, Quad, Quad]:
        """Children in [NW, NE, SW, SE] order."""
        return (self.nw, self.ne, self.sw, self.se)


Quad = Union[Empty, Leaf, Fork]


def _check_mass(mass: float, kind: str) -> None:
    if mass < 0 or math.isnan(mass):
        raise QuadInvariantError(f"{kind} aggregated mass must be non-negative, got {mass}")


def split(quad: Union[Empty, Leaf]) -> Fork:
    """Return a Fork of four Empty quadrants covering the region of ``quad``."""
    half = quad.size / 2
    quarter = quad.size / 4
    cx, cy = quad.center_x, quad.center_y
    return Fork(
        Empty(cx - quarter, cy - quarter, half),
        Empty(cx + quarter, cy - quarter, half),
        Empty(cx - quarter, cy + quarter, half),
        Empty(cx + quarter, cy + quarter, half),
    )


def insert(
    quad: Quad,
    body: Body,
    leaf_capacity: int = 1,
    minimum_size: float = 0.00001,
) -> Quad:
    """
    Return a new quad with ``body`` added.

    Empty becomes a Leaf. A Leaf that would exceed ``leaf_capacity`` is
    subdivided into a Fork and all its bodies are reinserted, unless its
    size is already at or below ``minimum_size`` (coincident bodies would
    otherwise split forever). A Fork inserts into the quadrant containing
    the body; positions outside the region go to the nearest quadrant.

    Args:
        quad: Quad to insert into
        body: Body to insert
        leaf_capacity: Bodies a leaf holds before subdividing
        minimum_size: Size at or below which leaves never subdivide

    Returns:
        Quad containing the previous bodies and ``body``
    """
    if isinstance(quad, Empty):
        return Leaf(quad.center_x, quad.center_y, quad.size, (body,))

    if isinstance(quad, Leaf):
        bodies = quad.bodies + (body,)
        if len(bodies) > leaf_capacity and quad.size > minimum_size:
            fork: Quad = split(quad)
            for b in bodies:
                fork = insert(fork, b, leaf_capacity, minimum_size)
            return fork
        return Leaf(quad.center_x, quad.center_y, quad.size, bodies)

    west = body.x < quad.center_x
    north = body.y < quad.center_y
    nw, ne, sw, se = quad.nw, quad.ne, quad.sw, quad.se
    if north and west:
        nw = insert(nw, body, leaf_capacity, minimum_size)
    elif north:
        ne = insert(ne, body, leaf_capacity, minimum_size)
    elif west:
        sw = insert(sw, body, leaf_capacity, minimum_size)
    else:
        se = insert(se, body, leaf_capacity, minimum_size)
    return Fork(nw, ne, sw, se)


def walk(quad: Quad) -> Iterator[Quad]:
    """Yield every node of the tree in pre-order."""
    stack = [quad]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Fork):
            # reversed so children come out in NW, NE, SW, SE order
            stack.extend(reversed(node.children))


def bodies_of(quad: Quad) -> Iterator[Body]:
    """Yield every body stored in the tree."""
    for node in walk(quad):
        if isinstance(node, Leaf):
            yield from node.bodies


__all__ = ["Empty", "Leaf", "Fork", "Quad", "split", "insert", "walk", "bodies_of"]
