"""
One Barnes-Hut timestep as a five-phase pipeline.

    bodies -> Boundaries -> SectorMatrix -> Quad -> filtered bodies -> updated bodies

Each phase consumes the complete output of the previous one and is run
through a TaskSupport as a parallel map or map/reduce. Every phase is
timed under its label by a TimeStatistics instance.
"""

from __future__ import annotations

import logging
import math
import warnings
from contextlib import contextmanager
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

if TYPE_CHECKING:
    from typing_extensions import Self

from .config import DEFAULT_CONFIG, SimulationConfig
from .parallel import SequentialTaskSupport, TaskSupport
from .physics import update_body
from .spatial.quad import Quad
from .spatial.sector_matrix import SectorMatrix
from .stats import PhaseTiming, TimeStatistics
from .types import Body, Boundaries, Event, EventType
from .validation import EmptySystemError, validate_parallelism

logger = logging.getLogger(__name__)


class Simulator:
    """
    Barnes-Hut simulator for a 2-D system of point masses.

    Example:
        with ThreadPoolTaskSupport(workers=4) as tasks:
            simulator = Simulator(
                config=SimulationConfig(theta=0.5),
                task_support=tasks,
            )
            bodies, quad = simulator.step(bodies)
        print(simulator.time_stats)

    The simulator holds no state that influences results: stepping the
    same bodies twice yields the same output.
    """

    def __init__(
        self,
        *,
        config: Optional[SimulationConfig] = None,
        task_support: Optional[TaskSupport] = None,
        time_stats: Optional[TimeStatistics] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_phase: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize simulator.

        Args:
            config: Simulation constants (defaults when omitted)
            task_support: Parallelism provider (sequential when omitted)
            time_stats: Timing collaborator (a fresh one when omitted)
            on_start: Callback fired when a step begins
            on_phase: Callback fired after each phase with its label and elapsed ms
            on_end: Callback fired when a step has produced its bodies
        """
        self._config: SimulationConfig = config if config is not None else DEFAULT_CONFIG
        self._task_support: TaskSupport = (
            task_support if task_support is not None else SequentialTaskSupport()
        )
        validate_parallelism(self._task_support.parallelism_level)
        self._time_stats: TimeStatistics = time_stats if time_stats is not None else TimeStatistics()
        self._events: Dict[EventType, Callable[[Optional[Event]], None]] = {}
        self._step_count: int = 0

        if on_start:
            self._events[EventType.start] = on_start
        if on_phase:
            self._events[EventType.phase] = on_phase
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        """Get the simulation constants."""
        return self._config

    @property
    def task_support(self) -> TaskSupport:
        """Get the parallelism provider."""
        return self._task_support

    @property
    def time_stats(self) -> TimeStatistics:
        """Get the per-phase timing statistics."""
        return self._time_stats

    @property
    def step_count(self) -> int:
        """Number of steps completed by this simulator."""
        return self._step_count

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a simulator event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """Trigger an event, calling the registered callback."""
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    @contextmanager
    def _phase(self, label: str) -> Iterator[PhaseTiming]:
        with self._time_stats.timed(label) as timing:
            yield timing
        self.trigger(
            {
                "type": EventType.phase,
                "step": self._step_count,
                "label": label,
                "elapsed": timing.elapsed_ms,
            }
        )

    # -------------------------------------------------------------------------
    # Boundaries
    # -------------------------------------------------------------------------

    @staticmethod
    def update_boundaries(boundaries: Boundaries, body: Body) -> Boundaries:
        """Fold one body position into a copy of ``boundaries``."""
        return Boundaries(
            min_x=min(body.x, boundaries.min_x),
            min_y=min(body.y, boundaries.min_y),
            max_x=max(body.x, boundaries.max_x),
            max_y=max(body.y, boundaries.max_y),
        )

    @staticmethod
    def merge_boundaries(a: Boundaries, b: Boundaries) -> Boundaries:
        """Smallest box covering both ``a`` and ``b``."""
        return Boundaries(
            min_x=min(a.min_x, b.min_x),
            min_y=min(a.min_y, b.min_y),
            max_x=max(a.max_x, b.max_x),
            max_y=max(a.max_y, b.max_y),
        )

    def compute_boundaries(self, bodies: Sequence[Body]) -> Boundaries:
        """Tight bounding box of all body positions."""
        with self._phase("boundaries"):
            return self._task_support.aggregate(
                bodies, Boundaries, self.update_boundaries, self.merge_boundaries
            )

    # -------------------------------------------------------------------------
    # Sector matrix and quadtree
    # -------------------------------------------------------------------------

    def compute_sector_matrix(self, bodies: Sequence[Body], boundaries: Boundaries) -> SectorMatrix:
        """Bucket the bodies into a sector grid, one partial grid per worker."""
        precision = self._config.sector_precision
        with self._phase("matrix"):
            return self._task_support.aggregate(
                bodies,
                lambda: SectorMatrix(boundaries, precision),
                SectorMatrix.add,
                SectorMatrix.combine,
            )

    def compute_quad(self, sector_matrix: SectorMatrix) -> Quad:
        """Build the quadtree from a finished sector grid."""
        with self._phase("quad"):
            return sector_matrix.to_quad(
                self._task_support.parallelism_level,
                self._task_support,
                leaf_capacity=self._config.leaf_capacity,
                minimum_size=self._config.minimum_size,
            )

    # -------------------------------------------------------------------------
    # Outliers
    # -------------------------------------------------------------------------

    def is_outlier(self, body: Body, quad: Quad, boundaries: Boundaries) -> bool:
        """
        True if ``body`` is far from the center of mass and escaping.

        The body must be farther than ``elimination_threshold * size`` from
        the center of mass and moving away from it faster than twice the
        escape speed at that distance.
        """
        dx = quad.mass_x - body.x
        dy = quad.mass_y - body.y
        d = math.hypot(dx, dy)
        if not d > self._config.elimination_threshold * boundaries.size:
            return False
        # Negative along the direction to the center of mass: moving away
        relative_speed = (body.xspeed * dx + body.yspeed * dy) / d
        if relative_speed >= 0:
            return False
        escape_speed = math.sqrt(2 * self._config.gee * quad.mass / d)
        return -relative_speed > 2 * escape_speed

    def eliminate_outliers(
        self, bodies: Sequence[Body], sector_matrix: SectorMatrix, quad: Quad
    ) -> List[Body]:
        """
        Drop escaping bodies.

        Only the outermost ring of sectors is inspected; interior bodies
        are kept whatever their speed.
        """
        boundaries = sector_matrix.boundaries

        def outliers_in_sector(sector: Tuple[int, int]) -> FrozenSet[Body]:
            return frozenset(b for b in sector_matrix[sector] if self.is_outlier(b, quad, boundaries))

        def keep(kept: List[Body], body: Body) -> List[Body]:
            if body not in outliers:
                kept.append(body)
            return kept

        with self._phase("eliminate"):
            per_sector = self._task_support.map(outliers_in_sector, sector_matrix.border_sectors())
            outliers: FrozenSet[Body] = frozenset().union(*per_sector)
            if outliers:
                logger.debug("Eliminating %d outlier(s)", len(outliers))
            return self._task_support.aggregate(bodies, list, keep, lambda a, b: a + b)

    # -------------------------------------------------------------------------
    # Integration
    # -------------------------------------------------------------------------

    def update_bodies(self, bodies: Sequence[Body], quad: Quad) -> List[Body]:
        """Advance every body by one timestep under the field of ``quad``."""
        config = self._config
        with self._phase("update"):
            return self._task_support.map(lambda b: update_body(b, quad, config), bodies)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def step(self, bodies: Iterable[Body]) -> Tuple[List[Body], Quad]:
        """
        Run one timestep.

        Args:
            bodies: Current bodies (at least one)

        Returns:
            (new_bodies, quad): the updated bodies without outliers and
            the quadtree built for this step

        Raises:
            EmptySystemError: If no bodies are given
        """
        bodies = list(bodies)
        if not bodies:
            raise EmptySystemError("Cannot step an empty system: at least one body is required")
        if len(bodies) < self._task_support.parallelism_level:
            warnings.warn(
                f"{len(bodies)} bodies for {self._task_support.parallelism_level} workers; "
                "some workers stay idle",
                RuntimeWarning,
                stacklevel=2,
            )

        self.trigger({"type": EventType.start, "step": self._step_count, "body_count": len(bodies)})

        boundaries = self.compute_boundaries(bodies)
        sector_matrix = self.compute_sector_matrix(bodies, boundaries)
        quad = self.compute_quad(sector_matrix)
        filtered = self.eliminate_outliers(bodies, sector_matrix, quad)
        new_bodies = self.update_bodies(filtered, quad)

        self._step_count += 1
        self.trigger({"type": EventType.end, "step": self._step_count, "body_count": len(new_bodies)})
        return new_bodies, quad

    def run(self, bodies: Iterable[Body], steps: int) -> Tuple[List[Body], Optional[Quad]]:
        """
        Run several consecutive steps.

        Returns:
            The bodies after the last step and its quad (None if steps == 0)

        Raises:
            EmptySystemError: If every body has been eliminated before the last step
        """
        current = list(bodies)
        quad: Optional[Quad] = None
        for _ in range(steps):
            current, quad = self.step(current)
        return current, quad


__all__ = ["Simulator"]
