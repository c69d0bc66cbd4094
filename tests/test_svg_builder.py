"""Tests for path emission and SVG document assembly."""

import xml.etree.ElementTree as ET

import svg

from particle_art.image_processing.rendering import group_by_color
from particle_art.image_processing.svg_builder import (
    build_svg_document,
    cluster_to_element,
    particle_radius,
)
from particle_art.models import SVG_NAMESPACE, Particle, SvgDocument

NS = {"svg": SVG_NAMESPACE}


class TestClusterToElement:
    def test_single_particle_is_circle(self):
        element = cluster_to_element([Particle(3, 4, (0, 0, 0))], 2)
        assert isinstance(element, svg.Circle)
        markup = element.as_str()
        assert 'cx="3"' in markup
        assert 'cy="4"' in markup
        assert 'r="2"' in markup

    def test_cluster_is_one_path_of_arcs(self):
        cluster = [Particle(10, 10, (0, 0, 0)), Particle(12, 10, (0, 0, 0))]
        element = cluster_to_element(cluster, 2)
        assert isinstance(element, svg.Path)
        d = ET.fromstring(element.as_str()).get("d")
        # one move and two half arcs per particle, no line segments
        assert d.count("M") == 2
        assert d.count("a") == 4
        assert "L" not in d and "l" not in d

    def test_radius_rounded_to_one_decimal(self):
        assert particle_radius(2) == 2
        assert particle_radius(1.5) == 1.5
        assert particle_radius(2.04) == 2
        assert particle_radius(1.26) == 1.3
        # ties round up
        assert particle_radius(2.25) == 2.3
        assert particle_radius(1.25) == 1.3
        assert particle_radius(0.05) == 0.1

    def test_tie_radius_reaches_the_markup(self):
        cluster = [Particle(10, 10, (0, 0, 0)), Particle(12, 10, (0, 0, 0))]
        d = ET.fromstring(cluster_to_element(cluster, particle_radius(2.25)).as_str()).get("d")
        assert "2.3" in d
        assert "2.2" not in d


class TestBuildSvgDocument:
    def test_one_group_per_cluster_in_luminance_order(self):
        particles = [
            Particle(1, 1, (250, 250, 250)),
            Particle(50, 50, (10, 10, 10)),
            Particle(2, 1, (10, 10, 10)),
        ]
        document = build_svg_document(60, 60, group_by_color(particles), 1, 3)
        assert isinstance(document, SvgDocument)
        assert [fill for fill, _ in document.groups] == ["#0a0a0a", "#0a0a0a", "#fafafa"]

    def test_root_attributes(self):
        document = build_svg_document(
            7, 5, group_by_color([Particle(1, 1, (1, 2, 3))]), 1, 3
        )
        root = ET.fromstring(document.as_str())
        assert root.tag == f"{{{SVG_NAMESPACE}}}svg"
        assert root.get("width") == "7"
        assert root.get("height") == "5"
        assert root.get("viewBox") == "0 0 7 5"

        groups = root.findall("svg:g", NS)
        assert [g.get("fill") for g in groups] == ["#010203"]
        assert groups[0].find("svg:circle", NS) is not None

    def test_root_tag_attribute_order(self):
        document = build_svg_document(
            7, 5, group_by_color([Particle(1, 1, (1, 2, 3))]), 1, 3
        )
        markup = document.as_str()
        assert markup.startswith(
            '<svg xmlns="http://www.w3.org/2000/svg" width="7" height="5" viewBox="0 0 7 5">'
        )
        assert markup.endswith("</svg>")
        assert markup.count("<svg") == 1

    def test_empty_document(self):
        document = build_svg_document(4, 4, [], 1, 3)
        root = ET.fromstring(document.as_str())
        assert root.findall("svg:g", NS) == []
        assert root.get("viewBox") == "0 0 4 4"
