"""
barneshut: Parallel Barnes-Hut N-body simulation in two dimensions.

One call to ``Simulator.step`` advances a system of point masses by one
timestep. Long-range gravity is approximated with a quadtree of
aggregated mass instead of summing all pairwise forces.

Pipeline of a step:
- boundaries: bounding box of all bodies (parallel reduce)
- matrix: bodies bucketed into a sector grid (parallel fold + combine)
- quad: quadtree built bottom-up from the grid
- eliminate: escaping bodies in the border sectors removed
- update: velocities and positions integrated (parallel map)
"""

__version__ = "0.1.0"

from .config import DEFAULT_CONFIG, SimulationConfig

# Diagnostics
from .metrics import (
    bodies_to_array,
    center_of_mass,
    direct_net_force,
    kinetic_energy,
    quad_depth,
    quad_node_count,
    total_mass,
    total_momentum,
)

# Parallelism providers
from .parallel import SequentialTaskSupport, TaskSupport, ThreadPoolTaskSupport
from .physics import distance, gravitational_force, net_force, update_body
from .simulator import Simulator

# Spatial data structures
from .spatial import Empty, Fork, Leaf, Quad, SectorMatrix
from .stats import TimeStatistics
from .types import Body, Boundaries, Event, EventType

# Validation utilities
from .validation import (
    EmptySystemError,
    IncompatibleSectorMatrixError,
    InvalidBodyError,
    InvalidConfigError,
    QuadInvariantError,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Body",
    "Boundaries",
    "Event",
    "EventType",
    # Configuration
    "SimulationConfig",
    "DEFAULT_CONFIG",
    # Simulation
    "Simulator",
    "TimeStatistics",
    "TaskSupport",
    "SequentialTaskSupport",
    "ThreadPoolTaskSupport",
    # Physics
    "distance",
    "gravitational_force",
    "net_force",
    "update_body",
    # Spatial data structures
    "Empty",
    "Leaf",
    "Fork",
    "Quad",
    "SectorMatrix",
    # Metrics
    "bodies_to_array",
    "total_mass",
    "center_of_mass",
    "total_momentum",
    "kinetic_energy",
    "direct_net_force",
    "quad_depth",
    "quad_node_count",
    # Validation
    "ValidationError",
    "InvalidConfigError",
    "InvalidBodyError",
    "EmptySystemError",
    "IncompatibleSectorMatrixError",
    "QuadInvariantError",
]
