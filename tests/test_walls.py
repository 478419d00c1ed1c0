#!/usr/bin/env python
"""
Wall Extraction Tests

Tests for:
- Wall detection from segments and polylines
- Door / window opening detection
- Exterior / interior classification
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from sketch_cleanup.geometry import Segment
from sketch_cleanup.topology.walls import (
    Wall,
    WallType,
    OpeningType,
    detect_walls,
    closest_endpoints,
    find_openings,
    classify_walls,
    extract_wall_geometry,
    extract_walls,
)


class TestDetectWalls:
    """Tests for detect_walls."""

    def test_filters_short_segments(self):
        segments = [Segment((0, 0), (50, 0)), Segment((0, 0), (5, 0))]

        walls = detect_walls(segments, min_length=10)

        assert len(walls) == 1
        assert walls[0].thickness == 2

    def test_keeps_segment_thickness(self):
        walls = detect_walls([Segment((0, 0), (50, 0), thickness=6)])
        assert walls[0].thickness == 6

    def test_max_length(self):
        walls = detect_walls([Segment((0, 0), (500, 0))], max_length=100)
        assert walls == []

    def test_wall_to_dict(self):
        wall = Wall((0, 0), (10, 0), 2, WallType.INTERIOR)
        assert wall.to_dict() == {
            "start": [0, 0],
            "end": [10, 0],
            "thickness": 2,
            "type": "interior",
        }


class TestOpenings:
    """Tests for opening detection."""

    def test_door_between_aligned_walls(self):
        walls = [Wall((0, 0), (20, 0)), Wall((20.9, 0), (40, 0))]

        openings = find_openings(walls, max_gap_size=10)

        assert len(openings) == 1
        assert openings[0].type == OpeningType.DOOR
        assert openings[0].width == pytest.approx(0.9)
        assert openings[0].start == (20, 0)
        assert openings[0].end == (20.9, 0)
        assert openings[0].wall_indices == (0, 1)

    def test_window_for_wider_gap(self):
        walls = [Wall((0, 0), (20, 0)), Wall((27, 0), (40, 0))]
        openings = find_openings(walls, max_gap_size=10)
        assert [o.type for o in openings] == [OpeningType.WINDOW]

    def test_gap_too_wide(self):
        walls = [Wall((0, 0), (20, 0)), Wall((35, 0), (50, 0))]
        assert find_openings(walls, max_gap_size=10) == []

    def test_touching_walls_have_no_opening(self):
        walls = [Wall((0, 0), (20, 0)), Wall((20, 0), (40, 0))]
        assert find_openings(walls) == []

    def test_perpendicular_walls_ignored(self):
        walls = [Wall((0, 0), (20, 0)), Wall((22, 0), (22, 20))]
        assert find_openings(walls) == []

    def test_input_order_does_not_matter(self):
        walls = [Wall((20.9, 0), (40, 0)), Wall((0, 0), (20, 0))]
        openings = find_openings(walls)
        assert len(openings) == 1
        assert openings[0].wall_indices == (1, 0)

    def test_closest_endpoints(self):
        gap, p1, p2 = closest_endpoints(Wall((0, 0), (10, 0)), Wall((40, 0), (13, 0)))
        assert gap == pytest.approx(3)
        assert p1 == (10, 0)
        assert p2 == (13, 0)

    def test_opening_to_dict(self):
        walls = [Wall((0, 0), (20, 0)), Wall((22, 0), (40, 0))]
        data = find_openings(walls)[0].to_dict()
        assert data["position"] == [21.0, 0.0]
        assert data["type"] == "door"
        assert data["walls"] == [0, 1]


class TestClassification:
    """Tests for exterior / interior classification."""

    def test_classify_by_thickness(self):
        walls = [Wall((0, 0), (10, 0), 6), Wall((0, 0), (10, 0), 2), Wall((0, 0), (10, 0), 4)]

        classified = classify_walls(walls)

        assert [w.type for w in classified] == [
            WallType.EXTERIOR,
            WallType.INTERIOR,
            WallType.EXTERIOR,
        ]
        assert walls[0].type is None


class TestExtraction:
    """Tests for the extraction entry points."""

    def test_extract_wall_geometry(self):
        segments = [Segment((0, 0), (20, 0)), Segment((20.9, 0), (40, 0)), Segment((0, 0), (3, 0))]

        geometry = extract_wall_geometry(segments, opening_threshold=10)

        assert len(geometry.walls) == 2
        assert len(geometry.openings) == 1
        data = geometry.to_dict()
        assert len(data["walls"]) == 2
        assert data["openings"][0]["type"] == "door"

    def test_extract_wall_geometry_empty(self):
        geometry = extract_wall_geometry([])
        assert geometry.walls == []
        assert geometry.openings == []

    def test_extract_walls_from_polylines(self):
        polylines = [[[0, 0], [20, 0], [20, 5]], [[0, 50], [0, 50], [30, 50]], "bad"]

        walls = extract_walls(polylines, min_wall_length=10, wall_thickness=3)

        assert [(w.start, w.end) for w in walls] == [
            ((0.0, 0.0), (20.0, 0.0)),
            ((0.0, 50.0), (30.0, 50.0)),
        ]
        assert all(w.thickness == 3 for w in walls)

    def test_extract_walls_non_list(self):
        assert extract_walls(None) == []


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
