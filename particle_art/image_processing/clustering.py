"""Spatial clustering of same-color particles.

AIDEV-NOTE: Particles are bucketed into a uniform grid whose cell size equals
the merge distance, so any neighbor within that distance lives in one of the
9 cells around a particle. A breadth-first walk over those cells groups
particles into connected clusters without comparing every pair.
"""

import logging
import math
from collections import deque
from typing import TYPE_CHECKING

from particle_art.errors import SettingsError

if TYPE_CHECKING:
    from particle_art.models import Particle

logger = logging.getLogger(__name__)

# Self plus the 8 surrounding cells
NEIGHBOR_OFFSETS = (
    (0, 0),
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)


def _cell_of(particle: "Particle", cell_size: float) -> "tuple[int, int]":
    return (math.floor(particle.x / cell_size), math.floor(particle.y / cell_size))


def build_spatial_grid(
    particles: "list[Particle]", cell_size: float
) -> "dict[tuple[int, int], list[int]]":
    """Map grid cell -> indices of the particles inside it, in input order."""
    grid: "dict[tuple[int, int], list[int]]" = {}
    for index, particle in enumerate(particles):
        grid.setdefault(_cell_of(particle, cell_size), []).append(index)
    return grid


def cluster_adjacent_particles(
    particles: "list[Particle]", max_distance: float
) -> "list[list[Particle]]":
    """Partition particles into clusters connected within max_distance.

    Args:
        particles: Particles of a single color
        max_distance: Inclusive distance at which two particles connect

    Returns:
        Clusters in the order their seed particle was reached; members of a
        cluster in traversal order. Every particle appears exactly once.
    """
    if not particles:
        return []
    if max_distance <= 0:
        raise SettingsError(f"Merge distance must be positive, got {max_distance}")

    cell_size = max_distance
    grid = build_spatial_grid(particles, cell_size)

    clusters = []
    visited = [False] * len(particles)

    for seed in range(len(particles)):
        if visited[seed]:
            continue

        visited[seed] = True
        cluster = [particles[seed]]
        queue = deque([seed])

        while queue:
            current = particles[queue.popleft()]
            cell_x, cell_y = _cell_of(current, cell_size)

            for dx, dy in NEIGHBOR_OFFSETS:
                for other_index in grid.get((cell_x + dx, cell_y + dy), ()):
                    if visited[other_index]:
                        continue

                    other = particles[other_index]
                    distance = math.hypot(current.x - other.x, current.y - other.y)
                    if distance <= max_distance:
                        visited[other_index] = True
                        cluster.append(other)
                        queue.append(other_index)

        clusters.append(cluster)

    logger.debug(
        "Clustered %d particles into %d clusters", len(particles), len(clusters)
    )
    return clusters
