"""Particle sampling and color grouping.

AIDEV-NOTE: This module turns a pixel buffer into colored particles with a
fixed two-pass grid: an aligned grid first, then the same grid shifted by
half a step to fill the gaps between aligned particles. The passes are not
adaptive; changing either one changes the visual density contract.
"""

import logging
from typing import TYPE_CHECKING

from particle_art.models import (
    ALPHA_THRESHOLD,
    BACKGROUND_DISTANCE,
    LIGHT_BACKGROUND_LUMINANCE,
    ColorGroup,
    Particle,
)

from .utils import color_distance, detect_background, get_luminance, round_half_up

if TYPE_CHECKING:
    from particle_art.models import PixelBuffer

logger = logging.getLogger(__name__)


def grid_step(particle_size: float, particle_density: float) -> float:
    """Spacing between grid points for a size/density pair.

    Lower densities give larger steps. The step never drops below one
    particle diameter, so aligned particles never overlap.
    """
    diameter = particle_size * 2
    return max(diameter, round_half_up(diameter * (100 / particle_density)))


def _collect_particles(
    buffer: "PixelBuffer",
    origin: float,
    step: float,
) -> "list[Particle]":
    """Sample one grid pass starting at (origin, origin).

    Candidates are skipped when mostly transparent, or when the image sits on
    a light background and the candidate is close to that background color.
    Dark backgrounds are never filtered.
    """
    width, height = buffer.width, buffer.height
    pixels = buffer.pixels

    background, background_luminance = detect_background(buffer)
    filter_background = background_luminance > LIGHT_BACKGROUND_LUMINANCE

    particles = []
    append_particle = particles.append

    y = origin
    while y < height:
        py = round_half_up(y)
        x = origin
        while x < width:
            px = round_half_up(x)
            x += step

            if not (0 <= px < width and 0 <= py < height):
                continue

            r, g, b, a = (int(c) for c in pixels[py, px])
            if a < ALPHA_THRESHOLD:
                continue

            color = (r, g, b)
            if (
                filter_background
                and color_distance(color, background) < BACKGROUND_DISTANCE
            ):
                continue

            append_particle(Particle(x=px, y=py, color=color))
        y += step

    return particles


def collect_grid_particles(
    buffer: "PixelBuffer", particle_size: float, particle_density: float
) -> "list[Particle]":
    """First pass: aligned grid starting at (particle_size, particle_size)."""
    step = grid_step(particle_size, particle_density)
    return _collect_particles(buffer, particle_size, step)


def collect_offset_particles(
    buffer: "PixelBuffer", particle_size: float, particle_density: float
) -> "list[Particle]":
    """Second pass: same grid shifted by half a step in both axes."""
    step = grid_step(particle_size, particle_density)
    return _collect_particles(buffer, particle_size + step / 2, step)


def render_particles(
    buffer: "PixelBuffer", particle_size: float, particle_density: float
) -> "list[Particle]":
    """Run both grid passes and concatenate them, aligned pass first.

    AIDEV-NOTE: No deduplication between passes; every survivor becomes a
    particle.
    """
    first_pass = collect_grid_particles(buffer, particle_size, particle_density)
    second_pass = collect_offset_particles(buffer, particle_size, particle_density)
    logger.debug(
        "Sampled %d grid + %d offset particles (step=%s)",
        len(first_pass),
        len(second_pass),
        grid_step(particle_size, particle_density),
    )
    return first_pass + second_pass


def group_by_color(particles: "list[Particle]") -> "list[ColorGroup]":
    """Group particles by exact color and order groups dark to light.

    Returns:
        ColorGroups sorted by ascending luminance of each group's first
        particle. Ties keep the order in which colors were first seen.
    """
    groups: "dict[tuple[int, int, int], ColorGroup]" = {}
    for particle in particles:
        key = tuple(round_half_up(c) for c in particle.color)
        group = groups.get(key)
        if group is None:
            group = groups[key] = ColorGroup(color=key)
        group.particles.append(particle)

    # sorted() is stable, so equal luminance keeps discovery order
    return sorted(groups.values(), key=lambda g: get_luminance(g.particles[0].color))
