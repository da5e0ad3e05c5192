"""
Spatial data structures for Barnes-Hut force calculations.

Provides the quadtree variants and the sector grid they are built from.
"""

from .quad import Empty, Fork, Leaf, Quad, bodies_of, insert, walk
from .sector_matrix import SectorMatrix

__all__ = ["Empty", "Fork", "Leaf", "Quad", "SectorMatrix", "bodies_of", "insert", "walk"]
