"""
Pytest configuration and shared fixtures.
"""

import numpy as np
import pytest

from barneshut import Body, SequentialTaskSupport, ThreadPoolTaskSupport


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def random_bodies(rng):
    """Fifty bodies spread over a 100x100 square with small random velocities."""
    n = 50
    xs = rng.uniform(0.0, 100.0, n)
    ys = rng.uniform(0.0, 100.0, n)
    masses = rng.uniform(1.0, 5.0, n)
    vxs = rng.normal(0.0, 1.0, n)
    vys = rng.normal(0.0, 1.0, n)
    return [
        Body(mass=float(masses[i]), x=float(xs[i]), y=float(ys[i]),
             xspeed=float(vxs[i]), yspeed=float(vys[i]))
        for i in range(n)
    ]


@pytest.fixture
def sequential():
    """Single-threaded task support."""
    return SequentialTaskSupport()


@pytest.fixture
def thread_pool():
    """Four-worker thread pool, shut down after the test."""
    with ThreadPoolTaskSupport(workers=4) as tasks:
        yield tasks
