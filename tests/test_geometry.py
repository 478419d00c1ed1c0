#!/usr/bin/env python
"""
Geometry Tests

Tests for:
- Angle and distance primitives
- Projection and intersection helpers
- Segment and Polyline parsing
- Room data structure
"""

import sys
import math
import logging
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from sketch_cleanup.geometry import (
    Room,
    Segment,
    Polyline,
    round_half_up,
    distance,
    line_angle,
    normalize_angle,
    normalize_angle_diff,
    angles_equivalent,
    is_parallel,
    project_point,
    project_point_on_line,
    perpendicular_distance,
    intersect_segments,
    intersect_lines,
    signed_area,
    polygon_area,
    path_length,
    simplify_polyline,
    parse_point,
    parse_segments,
    parse_polylines,
)


class TestAngles:
    """Tests for angle helpers."""

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(1.5) == 2
        assert round_half_up(2.5) == 3
        assert round_half_up(-0.5) == 0
        assert round_half_up(-1.5) == -1

    def test_line_angle_range(self):
        assert line_angle((0, 0), (1, 0)) == 0
        assert line_angle((0, 0), (0, 1)) == pytest.approx(math.pi / 2)
        assert line_angle((0, 0), (-1, 0)) == pytest.approx(math.pi)
        assert line_angle((0, 0), (0, -1)) == pytest.approx(3 * math.pi / 2)

    def test_normalize_angle(self):
        assert normalize_angle(-math.pi / 2) == pytest.approx(3 * math.pi / 2)
        assert normalize_angle(5 * math.pi) == pytest.approx(math.pi)
        assert normalize_angle(0) == 0

    def test_normalize_angle_diff(self):
        assert normalize_angle_diff(3 * math.pi / 2) == pytest.approx(math.pi / 2)
        assert normalize_angle_diff(-0.1) == pytest.approx(math.pi - 0.1)

    def test_angles_equivalent_opposite(self):
        """Opposite directions are the same orientation."""
        assert angles_equivalent(0, math.pi, 0.01)
        assert angles_equivalent(0.005, 2 * math.pi - 0.005, 0.02)
        assert not angles_equivalent(0, math.pi / 2, 0.1)

    def test_is_parallel(self):
        assert is_parallel((0, 0), (10, 0), (10, 5), (0, 5))
        assert not is_parallel((0, 0), (10, 0), (0, 0), (0, 10))


class TestProjection:
    """Tests for projection and intersection."""

    def test_project_point_clamped(self):
        assert project_point((5, 3), (0, 0), (10, 0)) == (5, 0)
        assert project_point((15, 3), (0, 0), (10, 0)) == (10, 0)
        assert project_point((-5, 3), (0, 0), (10, 0)) == (0, 0)

    def test_project_point_degenerate_segment(self):
        assert project_point((5, 3), (1, 1), (1, 1)) == (1, 1)

    def test_project_point_on_infinite_line(self):
        assert project_point_on_line((15, 3), (0, 0), (10, 0)) == (15, 0)

    def test_perpendicular_distance(self):
        assert perpendicular_distance((20, 4), (0, 0), (10, 0)) == pytest.approx(4)

    def test_intersect_segments(self):
        assert intersect_segments((0, 0), (10, 10), (0, 10), (10, 0)) == pytest.approx((5, 5))
        assert intersect_segments((0, 0), (1, 1), (0, 10), (10, 0)) is None
        assert intersect_segments((0, 0), (10, 0), (0, 1), (10, 1)) is None

    def test_intersect_lines(self):
        assert intersect_lines((0, 0), (1, 1), (0, 10), (10, 0)) == pytest.approx((5, 5))
        assert intersect_lines((0, 0), (10, 0), (0, 1), (10, 1)) is None


class TestPolygonMeasures:
    """Tests for area and length helpers."""

    def test_signed_area_orientation(self):
        ccw = [(0, 0), (10, 0), (10, 10), (0, 10)]
        assert signed_area(ccw) == pytest.approx(100)
        assert signed_area(list(reversed(ccw))) == pytest.approx(-100)

    def test_closed_ring_same_area(self):
        ring = [(0, 0), (10, 0), (10, 10), (0, 10), (0, 0)]
        assert polygon_area(ring) == pytest.approx(100)

    def test_degenerate_area(self):
        assert polygon_area([(0, 0), (1, 1)]) == 0.0

    def test_path_length(self):
        assert path_length([(0, 0), (3, 4), (3, 10)]) == pytest.approx(11)
        assert path_length([(0, 0)]) == 0.0

    def test_simplify_polyline(self):
        points = [(0, 0), (5, 0.1), (10, 0)]
        assert simplify_polyline(points, tolerance=1.0) == [(0, 0), (10, 0)]


class TestSegment:
    """Tests for Segment parsing and properties."""

    def test_from_start_end_dict(self):
        segment = Segment.from_obj({"start": [0, 0], "end": [3, 4], "thickness": 2})
        assert segment.start == (0.0, 0.0)
        assert segment.end == (3.0, 4.0)
        assert segment.thickness == 2.0
        assert segment.length == pytest.approx(5)

    def test_from_flat_dict(self):
        segment = Segment.from_obj({"x1": 1, "y1": 2, "x2": 3, "y2": 4})
        assert segment == Segment((1.0, 2.0), (3.0, 4.0))

    def test_from_pair(self):
        assert Segment.from_obj([(0, 0), (1, 0)]) == Segment((0.0, 0.0), (1.0, 0.0))

    def test_malformed(self):
        assert Segment.from_obj({"start": [0, 0]}) is None
        assert Segment.from_obj({"start": ["a", 0], "end": [1, 1]}) is None
        assert Segment.from_obj("line") is None
        assert Segment.from_obj(None) is None

    def test_non_finite_kept_but_invalid(self):
        segment = Segment.from_obj({"start": [math.nan, 0], "end": [1, 1]})
        assert segment is not None
        assert not segment.is_finite
        assert not segment.is_valid

    def test_zero_length_invalid(self):
        assert not Segment((1, 1), (1, 1)).is_valid

    def test_with_points_keeps_thickness(self):
        segment = Segment((0, 0), (1, 0), thickness=4)
        moved = segment.with_points((0, 1), (1, 1))
        assert moved.thickness == 4
        assert moved.start == (0, 1)

    def test_to_dict(self):
        assert Segment((0, 0), (1, 0)).to_dict() == {"start": [0, 0], "end": [1, 0]}
        assert Segment((0, 0), (1, 0), 3).to_dict()["thickness"] == 3

    def test_distance_to_point(self):
        assert Segment((0, 0), (10, 0)).distance_to_point((5, 7)) == pytest.approx(7)


class TestParsing:
    """Tests for tracer input parsing."""

    def test_parse_point_shapes(self):
        assert parse_point([1, 2]) == (1.0, 2.0)
        assert parse_point({"x": 1, "y": 2}) == (1.0, 2.0)
        assert parse_point([1, 2, 3]) == (1.0, 2.0)
        assert parse_point([True, 2]) is None
        assert parse_point([1]) is None

    def test_parse_segments_drops_malformed(self):
        raw = [
            {"start": [0, 0], "end": [10, 0]},
            {"start": [0, 0]},
            42,
            {"x1": 0, "y1": 0, "x2": 0, "y2": 10},
        ]
        segments = parse_segments(raw)
        assert len(segments) == 2

    def test_parse_segments_non_list(self):
        assert parse_segments(None) == []
        assert parse_segments({"start": [0, 0]}) == []

    def test_parse_polylines(self):
        raw = [
            [[0, 0], [10, 0], [10, 10]],
            {"points": [[0, 0], [5, 5]]},
            [[0, 0]],
            [[0, 0], ["bad", 1], [4, 4]],
        ]
        polylines = parse_polylines(raw)
        assert len(polylines) == 3
        assert polylines[2].points == ((0.0, 0.0), (4.0, 4.0))

    def test_polyline_segments_and_closure(self):
        polyline = Polyline.from_obj([[0, 0], [10, 0], [10, 10], [0.5, 0]])
        assert len(polyline.to_segments()) == 3
        assert polyline.closes_within(5)
        assert not polyline.is_closed


class TestRoom:
    """Tests for the Room data structure."""

    def test_from_points_closes_ring(self):
        room = Room.from_points([(0, 0), (10, 0), (10, 10), (0, 10)])
        assert room.ring[0] == room.ring[-1]
        assert len(room.ring) == 5
        assert len(room.vertices) == 4

    def test_measures(self):
        room = Room.from_points([(0, 0), (10, 0), (10, 10), (0, 10)])
        assert room.area == pytest.approx(100)
        assert room.perimeter == pytest.approx(40)
        assert room.is_simple

    def test_self_intersecting_not_simple(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sketch_cleanup.geometry.room"):
            bowtie = Room.from_points([(0, 0), (10, 10), (10, 0), (0, 10)])

        assert not bowtie.is_simple
        assert "self-intersects" in caplog.text

    def test_simple_room_not_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sketch_cleanup.geometry.room"):
            Room.from_points([(0, 0), (10, 0), (10, 10), (0, 10)])
        assert caplog.text == ""

    def test_to_dict(self):
        room = Room.from_points([(0, 0), (4, 0), (4, 4), (0, 4), (0, 0)])
        data = room.to_dict()
        assert data["polygon"][0] == [0.0, 0.0]
        assert data["polygon"][-1] == [0.0, 0.0]
        assert data["area"] == pytest.approx(16)


def test_distance():
    assert distance((0, 0), (3, 4)) == 5


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
