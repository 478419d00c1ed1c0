#!/usr/bin/env python
"""
Pipeline Tests

Tests for:
- cleanup_geometry end to end
- Polyline input
- Tagged Segments / Polylines dispatch
- Determinism and re-run stability
"""

import sys
import json
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from sketch_cleanup import (
    CleanupOptions,
    ConfigError,
    Diagnostics,
    DiagnosticCode,
    Segments,
    Polylines,
    cleanup,
    cleanup_geometry,
    cleanup_from_polylines,
)
from sketch_cleanup.pipeline import polylines_to_segments, segments_to_polylines


SQUARE_SEGMENTS = [
    {"start": [0, 0], "end": [100, 0]},
    {"start": [100, 0], "end": [100, 100]},
    {"start": [100, 100], "end": [0, 100]},
    {"start": [0, 100], "end": [0, 0]},
]

SQUARE_POLYLINE = [[0, 0], [100, 0], [100, 100], [0, 100]]


def sketchy_room():
    """A 200x100 room traced with wobble and a top wall drawn in two strokes."""
    return [
        {"start": [0, 0], "end": [200, 1]},
        {"start": [200, 0], "end": [201, 100]},
        {"start": [200, 100], "end": [100, 100.5]},
        {"start": [97, 100], "end": [0, 100]},
        {"start": [0, 100], "end": [0.5, 0]},
    ]


class TestCleanupGeometry:
    """Tests for cleanup_geometry."""

    def test_square_room(self):
        result = cleanup_geometry(SQUARE_SEGMENTS)

        assert len(result.rooms) == 1
        assert result.rooms[0].area == pytest.approx(10000)
        assert result.polygons == result.rooms
        assert len(result.lines) == 4

    def test_line_order_groups_orientation(self):
        result = cleanup_geometry(SQUARE_SEGMENTS)

        assert [line.to_dict() for line in result.lines] == [
            {"start": [0, 0], "end": [100, 0]},
            {"start": [100, 100], "end": [0, 100]},
            {"start": [100, 0], "end": [100, 100]},
            {"start": [0, 100], "end": [0, 0]},
        ]

    def test_empty_and_non_list(self):
        for value in ([], None, "lines", {"start": [0, 0]}):
            result = cleanup_geometry(value)
            assert result.rooms == []
            assert result.lines == []
            assert result.polygons == []

    def test_malformed_segments_dropped(self):
        diagnostics = Diagnostics()
        lines = SQUARE_SEGMENTS + [{"start": [0, 0]}, "junk"]

        result = cleanup_geometry(lines, diagnostics=diagnostics)

        assert len(result.rooms) == 1
        events = diagnostics.by_code(DiagnosticCode.INVALID_INPUT)
        assert events[0].details["dropped"] == 2

    def test_options_mapping(self):
        result = cleanup_geometry(SQUARE_SEGMENTS, {"minArea": 20000, "minRoomArea": 100})
        assert result.rooms == []

    def test_bad_option_values_rejected(self):
        for options in ({"gridSize": None}, {"roomGridTolerance": 0}, {"maxGap": "wide"}):
            with pytest.raises(ConfigError):
                cleanup_geometry(SQUARE_SEGMENTS, options)

    def test_min_area_invariant(self):
        options = CleanupOptions(min_area=5000, min_room_area=100)
        for room in cleanup_geometry(sketchy_room(), options).rooms:
            assert room.area >= 5000

    def test_snapping_straightens_input(self):
        result = cleanup_geometry([{"start": [0, 0], "end": [100, 2]}])

        assert len(result.lines) == 1
        assert result.lines[0].start == (0, 0)
        assert result.lines[0].end[1] == 0

    def test_thickness_survives(self):
        lines = [dict(line, thickness=6) for line in SQUARE_SEGMENTS]
        result = cleanup_geometry(lines)
        assert all(line.thickness == 6 for line in result.lines)

    def test_sketchy_input_yields_room(self):
        result = cleanup_geometry(sketchy_room())

        assert len(result.lines) == 4
        assert len(result.rooms) == 1
        assert result.rooms[0].area == pytest.approx(20000, rel=1e-3)
        for line in result.lines:
            assert line.start[0] == line.end[0] or line.start[1] == line.end[1]

    def test_to_dict_is_json_serializable(self):
        data = cleanup_geometry(SQUARE_SEGMENTS).to_dict()
        text = json.dumps(data)

        assert set(data) == {"rooms", "lines", "polygons", "diagnostics"}
        assert data["rooms"][0][0] == data["rooms"][0][-1]
        assert text


class TestDeterminism:
    """Identical input gives identical output."""

    def test_repeat_runs_identical(self):
        first = json.dumps(cleanup_geometry(sketchy_room()).to_dict())
        second = json.dumps(cleanup_geometry(sketchy_room()).to_dict())
        assert first == second

    def test_rerun_on_own_output(self):
        result = cleanup_geometry(sketchy_room())
        again = cleanup_geometry([line.to_dict() for line in result.lines])
        assert len(again.lines) == len(result.lines)
        assert len(again.rooms) == len(result.rooms)

    def test_square_is_stable(self):
        result = cleanup_geometry(SQUARE_SEGMENTS)
        again = cleanup_geometry(result.lines)
        assert again.to_dict() == result.to_dict()


class TestPolylineInput:
    """Tests for polyline input."""

    def test_open_polyline_gets_closing_segment(self):
        segments = polylines_to_segments([SQUARE_POLYLINE], closed_tolerance=5)
        assert len(segments) == 4
        assert segments[-1].start == (0, 100)
        assert segments[-1].end == (0, 0)

    def test_closed_polyline_not_doubled(self):
        segments = polylines_to_segments([SQUARE_POLYLINE + [[0, 0]]], closed_tolerance=5)
        assert len(segments) == 4

    def test_two_point_polyline_not_closed(self):
        assert len(polylines_to_segments([[[0, 0], [50, 0]]], closed_tolerance=5)) == 1

    def test_cleanup_from_polylines(self):
        result = cleanup_from_polylines([SQUARE_POLYLINE])

        assert len(result.rooms) == 1
        assert result.rooms[0].area == pytest.approx(10000)

    def test_dict_polylines(self):
        result = cleanup_from_polylines([{"points": SQUARE_POLYLINE}])
        assert len(result.rooms) == 1

    def test_empty(self):
        assert cleanup_from_polylines([]).rooms == []
        assert cleanup_from_polylines(None).lines == []


class TestSegmentChaining:
    """Tests for segments_to_polylines."""

    def test_square_becomes_closed_polyline(self):
        polylines = segments_to_polylines(SQUARE_SEGMENTS, tolerance=5)

        assert len(polylines) == 1
        assert len(polylines[0]) == 5
        assert polylines[0][0] == polylines[0][-1]

    def test_near_miss_joined(self):
        segments = [
            {"start": [0, 0], "end": [100, 0]},
            {"start": [102, 1], "end": [102, 50]},
        ]
        assert segments_to_polylines(segments, tolerance=5) == [[[0, 0], [100, 0], [102, 50]]]

    def test_disconnected_segments_split(self):
        segments = [
            {"start": [0, 0], "end": [100, 0]},
            {"start": [0, 50], "end": [100, 50]},
            {"start": [0]},
        ]
        polylines = segments_to_polylines(segments, tolerance=5)
        assert [len(p) for p in polylines] == [2, 2]

    def test_empty(self):
        assert segments_to_polylines([], tolerance=5) == []


class TestCleanupDispatch:
    """Tests for the tagged-input entry point."""

    def test_segments(self):
        assert len(cleanup(Segments(SQUARE_SEGMENTS)).rooms) == 1

    def test_polylines(self):
        assert len(cleanup(Polylines([SQUARE_POLYLINE])).rooms) == 1

    def test_same_result_both_shapes(self):
        from_segments = cleanup(Segments(SQUARE_SEGMENTS))
        from_polylines = cleanup(Polylines([SQUARE_POLYLINE]))
        assert from_segments.rooms[0].area == from_polylines.rooms[0].area

    def test_rejects_raw_list(self):
        with pytest.raises(TypeError):
            cleanup(SQUARE_SEGMENTS)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
