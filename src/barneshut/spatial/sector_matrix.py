"""
Uniform sector grid used to bucket bodies before building the quadtree.

Inserting bodies one by one into a shared quadtree would need locking.
Instead every worker buckets its share of the bodies into its own
SectorMatrix, the partial matrices are combined cell by cell, and the
quadtree is built bottom-up from the finished grid.
"""

from __future__ import annotations

import math
from functools import partial
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from ..validation import IncompatibleSectorMatrixError, validate_sector_precision
from .quad import Empty, Fork, Quad, insert

if TYPE_CHECKING:
    from ..parallel import TaskSupport
    from ..types import Body, Boundaries

# Sub-squares built per requested worker when the build runs in parallel
BALANCING_FACTOR = 4


class SectorMatrix:
    """
    A ``sector_precision x sector_precision`` grid spanning ``boundaries``.

    Cell (x, y) covers ``[min_x + x*s, min_x + (x+1)*s)`` horizontally and
    likewise vertically, with ``s = boundaries.size / sector_precision``.
    Positions outside the grid are clamped to the nearest edge cell.

    Usage:
        matrix = SectorMatrix(boundaries, 8)
        for body in bodies:
            matrix += body
        quad = matrix.to_quad(parallelism=4, task_support=tasks)

    A matrix is owned by one worker while it is filled; ``combine`` never
    modifies either operand.
    """

    def __init__(self, boundaries: Boundaries, sector_precision: int) -> None:
        """
        Initialize an empty grid.

        Args:
            boundaries: Box the grid spans (its square size is used)
            sector_precision: Number of cells per side (power of two)
        """
        self.boundaries = boundaries
        self.sector_precision = validate_sector_precision(sector_precision)
        self.sector_size = boundaries.size / sector_precision
        self._cells: List[List[Body]] = [[] for _ in range(sector_precision * sector_precision)]

    # -------------------------------------------------------------------------
    # Bucketing
    # -------------------------------------------------------------------------

    def _axis_index(self, position: float, origin: float) -> int:
        # A degenerate (zero-size) grid maps everything to the first cell
        if not self.sector_size > 0 or not math.isfinite(self.sector_size):
            return 0
        index = math.floor((position - origin) / self.sector_size)
        return min(max(index, 0), self.sector_precision - 1)

    def sector_of(self, body: Body) -> Tuple[int, int]:
        """Return the (x, y) cell the body's position maps to."""
        return (
            self._axis_index(body.x, self.boundaries.min_x),
            self._axis_index(body.y, self.boundaries.min_y),
        )

    def add(self, body: Body) -> SectorMatrix:
        """Insert a body into its cell and return self."""
        x, y = self.sector_of(body)
        self._cells[y * self.sector_precision + x].append(body)
        return self

    def __iadd__(self, body: Body) -> SectorMatrix:
        return self.add(body)

    def combine(self, other: SectorMatrix) -> SectorMatrix:
        """
        Merge two matrices of identical geometry into a new one.

        Every cell of the result holds the bodies of the same cell in
        both operands, so partial matrices can be reduced in any grouping.

        Raises:
            IncompatibleSectorMatrixError: If precision or boundaries differ
        """
        if (
            self.sector_precision != other.sector_precision
            or self.boundaries != other.boundaries
        ):
            raise IncompatibleSectorMatrixError(
                f"Cannot combine {self!r} with {other!r}: geometry differs"
            )
        merged = SectorMatrix(self.boundaries, self.sector_precision)
        merged._cells = [a + b for a, b in zip(self._cells, other._cells)]
        return merged

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __getitem__(self, key: Tuple[int, int]) -> Tuple[Body, ...]:
        """Bodies in cell (x, y)."""
        x, y = key
        if not (0 <= x < self.sector_precision and 0 <= y < self.sector_precision):
            raise IndexError(f"sector {key} out of range for precision {self.sector_precision}")
        return tuple(self._cells[y * self.sector_precision + x])

    def __iter__(self) -> Iterator[Tuple[Tuple[int, int], Tuple[Body, ...]]]:
        """Yield ((x, y), bodies) for every cell, row by row."""
        p = self.sector_precision
        for index, cell in enumerate(self._cells):
            yield (index % p, index // p), tuple(cell)

    @property
    def body_count(self) -> int:
        """Total number of bodies across all cells."""
        return sum(len(cell) for cell in self._cells)

    def border_sectors(self) -> List[Tuple[int, int]]:
        """
        Cells of the outermost ring, each listed once.

        Rows 0 and ``precision - 1`` in full, then columns 0 and
        ``precision - 1`` for the rows strictly between them.
        """
        p = self.sector_precision
        rows = (0, p - 1) if p > 1 else (0,)
        cols = (0, p - 1) if p > 1 else (0,)
        horizontal = [(x, y) for x in range(p) for y in rows]
        vertical = [(x, y) for y in range(1, p - 1) for x in cols]
        return horizontal + vertical

    def __repr__(self) -> str:
        return (
            f"SectorMatrix(precision={self.sector_precision}, "
            f"boundaries={self.boundaries!r}, bodies={self.body_count})"
        )

    # -------------------------------------------------------------------------
    # Quadtree construction
    # -------------------------------------------------------------------------

    def _sector_quad(self, x: int, y: int, leaf_capacity: int, minimum_size: float) -> Quad:
        """Build the quad of a single cell by folding its bodies into an Empty."""
        size = self.sector_size
        center_x = self.boundaries.min_x + x * size + size / 2
        center_y = self.boundaries.min_y + y * size + size / 2
        quad: Quad = Empty(center_x, center_y, size)
        for body in self._cells[y * self.sector_precision + x]:
            quad = insert(quad, body, leaf_capacity, minimum_size)
        return quad

    def _build(
        self, x: int, y: int, span: int, leaf_capacity: int, minimum_size: float
    ) -> Quad:
        """Sequentially build the quad of the ``span x span`` square at (x, y)."""
        if span == 1:
            return self._sector_quad(x, y, leaf_capacity, minimum_size)
        half = span // 2
        return Fork(
            self._build(x, y, half, leaf_capacity, minimum_size),
            self._build(x + half, y, half, leaf_capacity, minimum_size),
            self._build(x, y + half, half, leaf_capacity, minimum_size),
            self._build(x + half, y + half, half, leaf_capacity, minimum_size),
        )

    def _plan(
        self,
        x: int,
        y: int,
        span: int,
        achieved: int,
        parallelism: int,
        frontier: List[Tuple[int, int, int]],
    ) -> None:
        """Collect the sub-squares that are built as independent tasks."""
        if span == 1 or achieved >= parallelism * BALANCING_FACTOR:
            frontier.append((x, y, span))
            return
        half = span // 2
        for qx, qy in ((x, y), (x + half, y), (x, y + half), (x + half, y + half)):
            self._plan(qx, qy, half, achieved * 4, parallelism, frontier)

    def _assemble(
        self, x: int, y: int, span: int, built: dict[Tuple[int, int, int], Quad]
    ) -> Quad:
        square = (x, y, span)
        if square in built:
            return built[square]
        half = span // 2
        return Fork(
            self._assemble(x, y, half, built),
            self._assemble(x + half, y, half, built),
            self._assemble(x, y + half, half, built),
            self._assemble(x + half, y + half, half, built),
        )

    def to_quad(
        self,
        parallelism: int = 1,
        task_support: Optional[TaskSupport] = None,
        leaf_capacity: int = 1,
        minimum_size: float = 0.00001,
    ) -> Quad:
        """
        Build the quadtree of the whole grid bottom-up.

        Each cell becomes an Empty or a Leaf/Fork of its bodies, and cells
        are merged four at a time into Forks up to the root. With
        ``parallelism > 1`` and a task support, the grid is split into
        independent sub-squares that are built concurrently; the tree
        shape and aggregates do not depend on the split.

        Args:
            parallelism: Number of workers available
            task_support: Provider that runs the sub-square builds
            leaf_capacity: Bodies a leaf holds before subdividing
            minimum_size: Size at or below which leaves never subdivide

        Returns:
            Root quad covering the whole grid
        """
        p = self.sector_precision
        if parallelism <= 1 or task_support is None:
            return self._build(0, 0, p, leaf_capacity, minimum_size)

        frontier: List[Tuple[int, int, int]] = []
        self._plan(0, 0, p, 1, parallelism, frontier)
        tasks = [
            partial(self._build, x, y, span, leaf_capacity, minimum_size)
            for x, y, span in frontier
        ]
        results = task_support.run_all(tasks)
        return self._assemble(0, 0, p, dict(zip(frontier, results)))


__all__ = ["SectorMatrix", "BALANCING_FACTOR"]
