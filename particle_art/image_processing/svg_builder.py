"""SVG path emission and document assembly."""

from typing import TYPE_CHECKING

import svg

from particle_art.models import SvgDocument

from .clustering import cluster_adjacent_particles
from .utils import rgb_to_hex, round_to_tenth

if TYPE_CHECKING:
    from particle_art.models import ColorGroup, Particle


def _number(value: float) -> "int | float":
    """Write integral values without a trailing .0 so markup stays compact."""
    value = round(float(value), 4)
    return int(value) if value.is_integer() else value


def particle_radius(particle_size: float) -> "int | float":
    """Radius written to the document: particle size to one decimal."""
    return _number(round_to_tenth(particle_size))


def circle_arcs(particle: "Particle", radius: float) -> "list[svg.PathData]":
    """Full circle around a particle as two mirrored half arcs."""
    r = _number(radius)
    return [
        svg.MoveTo(_number(particle.x - radius), particle.y),
        svg.ArcRel(rx=r, ry=r, angle=0, large_arc=True, sweep=False, dx=_number(radius * 2), dy=0),
        svg.ArcRel(rx=r, ry=r, angle=0, large_arc=True, sweep=False, dx=_number(-radius * 2), dy=0),
    ]


def cluster_to_element(cluster: "list[Particle]", radius: float) -> svg.Element:
    """Convert a cluster into one drawable primitive.

    Args:
        cluster: Non-empty list of same-color particles
        radius: Circle radius for every particle

    Returns:
        A circle for a lone particle, otherwise a single path made of one
        circle outline per particle.

    AIDEV-NOTE: The path is a union of overlapping circle outlines under one
    fill, not a computed outline of the merged shape. Nonzero filling makes
    the overlaps render as one solid blob.
    """
    if len(cluster) == 1:
        particle = cluster[0]
        return svg.Circle(cx=particle.x, cy=particle.y, r=_number(radius))

    path_data: "list[svg.PathData]" = []
    for particle in cluster:
        path_data.extend(circle_arcs(particle, radius))
    return svg.Path(d=path_data)


def build_svg_document(
    width: int,
    height: int,
    color_groups: "list[ColorGroup]",
    particle_size: float,
    merge_distance: float,
) -> SvgDocument:
    """Cluster each color group and assemble the drawing groups.

    Args:
        width: Canvas width in px (after downscaling)
        height: Canvas height in px (after downscaling)
        color_groups: Groups already sorted dark to light
        particle_size: Particle radius
        merge_distance: Distance at which same-color particles merge

    Returns:
        SvgDocument with one (fill, primitive) entry per cluster, in paint
        order.
    """
    radius = particle_radius(particle_size)
    document = SvgDocument(width=width, height=height)

    for group in color_groups:
        fill = rgb_to_hex(group.color)
        for cluster in cluster_adjacent_particles(group.particles, merge_distance):
            document.groups.append((fill, cluster_to_element(cluster, radius)))

    return document
