#!/usr/bin/env python3
"""
Benchmark Barnes-Hut steps on a random galaxy-like disc.

Usage:
    python scripts/benchmark_step.py [--bodies N] [--steps S] [--workers W] [--theta T]

Examples:
    python scripts/benchmark_step.py
    python scripts/benchmark_step.py --bodies 5000 --workers 8
    python scripts/benchmark_step.py --theta 0.0 --bodies 500
"""

from __future__ import annotations

import argparse
import logging
import time

import numpy as np

from barneshut import (
    Body,
    SimulationConfig,
    Simulator,
    ThreadPoolTaskSupport,
    kinetic_energy,
    quad_depth,
    total_momentum,
)


def create_disc(n: int, radius: float, central_mass: float, seed: int = 42) -> list[Body]:
    """Create n light bodies on roughly circular orbits around a heavy center."""
    rng = np.random.default_rng(seed)
    r = radius * np.sqrt(rng.uniform(0.05, 1.0, n))
    phi = rng.uniform(0.0, 2 * np.pi, n)
    x = r * np.cos(phi)
    y = r * np.sin(phi)
    speed = np.sqrt(SimulationConfig().gee * central_mass / r)
    bodies = [Body(mass=central_mass, x=0.0, y=0.0)]
    bodies.extend(
        Body(mass=1.0, x=float(x[i]), y=float(y[i]), xspeed=float(-speed[i] * np.sin(phi[i])),
             yspeed=float(speed[i] * np.cos(phi[i])))
        for i in range(n)
    )
    return bodies


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark Barnes-Hut steps")
    parser.add_argument("--bodies", type=int, default=2000, help="Number of bodies")
    parser.add_argument("--steps", type=int, default=5, help="Number of steps")
    parser.add_argument("--workers", type=int, default=4, help="Worker threads")
    parser.add_argument("--theta", type=float, default=0.5, help="Opening-angle threshold")
    parser.add_argument("--verbose", action="store_true", help="Log every phase")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    bodies = create_disc(args.bodies, radius=500.0, central_mass=1000.0)
    config = SimulationConfig(theta=args.theta)

    with ThreadPoolTaskSupport(workers=args.workers) as tasks:
        simulator = Simulator(config=config, task_support=tasks)
        start = time.perf_counter()
        bodies, quad = simulator.run(bodies, args.steps)
        elapsed = time.perf_counter() - start

    print(f"{args.steps} steps, {len(bodies)} bodies left, {elapsed:.3f} s")
    print(f"tree depth: {quad_depth(quad) if quad is not None else 0}")
    print(f"kinetic energy: {kinetic_energy(bodies):.4g}")
    print(f"momentum: {total_momentum(bodies)}")
    print("average per phase:")
    print(simulator.time_stats)


if __name__ == "__main__":
    main()
