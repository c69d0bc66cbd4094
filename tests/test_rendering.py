"""Tests for background detection, grid sampling and color grouping."""

import numpy as np
import pytest

from conftest import solid_buffer
from particle_art.image_processing.rendering import (
    collect_grid_particles,
    collect_offset_particles,
    grid_step,
    group_by_color,
    render_particles,
)
from particle_art.image_processing.utils import (
    detect_background,
    get_luminance,
    rgb_to_hex,
    round_half_up,
)
from particle_art.models import Particle


class TestColorHelpers:
    @pytest.mark.parametrize(
        "value, expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (-0.5, 0)]
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_luminance(self):
        assert get_luminance((255, 255, 255)) == pytest.approx(255)
        assert get_luminance((128, 128, 128)) == pytest.approx(128)
        assert get_luminance((255, 0, 0)) == pytest.approx(76.245)

    def test_hex_is_lowercase_six_digits(self):
        assert rgb_to_hex((255, 0, 171)) == "#ff00ab"
        assert rgb_to_hex((0, 0, 0)) == "#000000"
        assert rgb_to_hex((127.5, 0, 0)) == "#800000"


class TestBackgroundDetection:
    def test_corners_are_averaged(self):
        buffer = solid_buffer(5, 4, (0, 0, 0))
        buffer.pixels[0, 0, :3] = (100, 0, 0)
        buffer.pixels[0, 4, :3] = (0, 100, 0)
        buffer.pixels[3, 0, :3] = (0, 0, 100)
        buffer.pixels[3, 4, :3] = (100, 100, 100)
        # center pixel is ignored
        buffer.pixels[2, 2, :3] = (255, 255, 255)

        color, luminance = detect_background(buffer)
        assert color == (50, 50, 50)
        assert luminance == pytest.approx(50)

    def test_single_pixel_buffer(self):
        color, luminance = detect_background(solid_buffer(1, 1, (10, 20, 30)))
        assert color == (10, 20, 30)


class TestGridStep:
    @pytest.mark.parametrize(
        "size, density, expected",
        [(1, 100, 2), (1, 50, 4), (2, 10, 40), (5, 100, 10), (1.5, 50, 6), (1, 30, 7)],
    )
    def test_step(self, size, density, expected):
        assert grid_step(size, density) == expected

    def test_step_never_below_diameter(self):
        assert grid_step(3, 100) >= 6


class TestSampling:
    def test_gray_scenario_positions(self, gray_buffer):
        first = collect_grid_particles(gray_buffer, 1, 100)
        second = collect_offset_particles(gray_buffer, 1, 100)
        assert [(p.x, p.y) for p in first] == [(1, 1), (3, 1), (1, 3), (3, 3)]
        assert [(p.x, p.y) for p in second] == [(2, 2)]
        assert all(p.color == (128, 128, 128) for p in first + second)

    def test_passes_concatenated_without_dedup(self, gray_buffer):
        particles = render_particles(gray_buffer, 1, 100)
        assert len(particles) == 5
        assert (particles[-1].x, particles[-1].y) == (2, 2)

    def test_half_pixel_grid_rounds_up(self):
        buffer = solid_buffer(20, 20, (10, 10, 10))
        particles = collect_grid_particles(buffer, 1.5, 50)
        xs = sorted({p.x for p in particles})
        # origin 1.5 with step 6 -> 1.5, 7.5, 13.5, 19.5
        assert xs == [2, 8, 14]

    def test_particles_in_bounds_and_opaque(self, noisy_buffer):
        for size, density in [(1, 100), (2, 50), (1.5, 35), (3, 10)]:
            for particle in render_particles(noisy_buffer, size, density):
                assert 0 <= particle.x < noisy_buffer.width
                assert 0 <= particle.y < noisy_buffer.height
                assert noisy_buffer.pixels[particle.y, particle.x, 3] >= 128

    def test_transparent_pixels_skipped(self):
        buffer = solid_buffer(10, 10, (50, 50, 50), alpha=127)
        assert render_particles(buffer, 1, 100) == []

    def test_light_background_filtered(self, red_on_white_buffer):
        particles = render_particles(red_on_white_buffer, 1, 100)
        assert particles
        assert {p.color for p in particles} == {(255, 0, 0)}

    def test_near_background_colors_also_filtered(self):
        buffer = solid_buffer(10, 10, (250, 250, 250))
        buffer.pixels[2:8, 2:8, :3] = (235, 240, 245)  # distance ~19 from background
        assert render_particles(buffer, 1, 100) == []

    def test_dark_background_never_filtered(self):
        buffer = solid_buffer(6, 6, (0, 0, 0))
        particles = render_particles(buffer, 1, 100)
        assert particles
        assert all(p.color == (0, 0, 0) for p in particles)


class TestGroupByColor:
    def test_groups_sorted_dark_to_light(self, noisy_buffer):
        groups = group_by_color(render_particles(noisy_buffer, 1, 100))
        luminances = [group.luminance for group in groups]
        assert luminances == sorted(luminances)

    def test_exact_colors_not_merged(self):
        particles = [
            Particle(0, 0, (100, 100, 100)),
            Particle(1, 0, (101, 100, 100)),
            Particle(2, 0, (100, 100, 100)),
        ]
        groups = group_by_color(particles)
        assert [g.color for g in groups] == [(100, 100, 100), (101, 100, 100)]
        assert len(groups[0].particles) == 2
        assert groups[0].hex_color == "#646464"

    def test_equal_luminance_keeps_discovery_order(self):
        magenta = (255, 0, 125)
        green = (0, 153, 6)
        assert magenta != green
        assert get_luminance(magenta) == get_luminance(green)

        green_first = group_by_color(
            [Particle(0, 0, green), Particle(1, 0, magenta), Particle(2, 0, green)]
        )
        assert [g.color for g in green_first] == [green, magenta]

        magenta_first = group_by_color([Particle(0, 0, magenta), Particle(1, 0, green)])
        assert [g.color for g in magenta_first] == [magenta, green]

    def test_equal_luminance_ties_sit_between_darker_and_lighter(self):
        magenta = (255, 0, 125)
        green = (0, 153, 6)
        particles = [
            Particle(0, 0, (250, 250, 250)),
            Particle(1, 0, green),
            Particle(2, 0, (5, 5, 5)),
            Particle(3, 0, magenta),
        ]
        colors = [g.color for g in group_by_color(particles)]
        assert colors == [(5, 5, 5), green, magenta, (250, 250, 250)]

    def test_grouping_partitions_particles(self, noisy_buffer):
        particles = render_particles(noisy_buffer, 2, 60)
        groups = group_by_color(particles)
        assert sum(len(g.particles) for g in groups) == len(particles)
        for group in groups:
            assert all(p.color == group.color for p in group.particles)
        assert len({g.color for g in groups}) == len(groups)

    def test_grouping_is_deterministic(self, noisy_buffer):
        particles = render_particles(noisy_buffer, 1, 100)
        first = [(g.color, g.particles) for g in group_by_color(particles)]
        second = [(g.color, g.particles) for g in group_by_color(list(particles))]
        assert first == second

    def test_empty(self):
        assert group_by_color([]) == []
