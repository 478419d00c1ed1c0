#!/usr/bin/env python
"""
CLI Tests

Tests for:
- Argument parsing and validation
- Reading segment / polyline JSON
- End-to-end run writing the topology result
"""

import sys
import json
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from sketch_cleanup.cli import (
    create_parser,
    parse_args,
    read_geometry,
    run,
    main,
)
from sketch_cleanup.pipeline import Polylines, Segments


SQUARE_SEGMENTS = [
    {"start": [0, 0], "end": [100, 0]},
    {"start": [100, 0], "end": [100, 100]},
    {"start": [100, 100], "end": [0, 100]},
    {"start": [0, 100], "end": [0, 0]},
]

SQUARE_POLYLINE = [[0, 0], [100, 0], [100, 100], [0, 100], [0, 0]]


def write_json(path, data):
    path.write_text(json.dumps(data))
    return str(path)


class TestArgumentParsing:
    """Tests for create_parser / parse_args."""

    def test_defaults(self, tmp_path):
        input_path = write_json(tmp_path / "in.json", SQUARE_SEGMENTS)

        args = parse_args(["-i", input_path, "-o", str(tmp_path / "out.json")])

        assert args.config is None
        assert args.scale is None
        assert not args.validate
        assert not args.verbose

    def test_requires_input_and_output(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_missing_input_file(self, tmp_path):
        with pytest.raises(SystemExit):
            parse_args(["-i", str(tmp_path / "missing.json"), "-o", str(tmp_path / "out.json")])

    def test_input_must_be_json(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("[]")
        with pytest.raises(SystemExit):
            parse_args(["-i", str(path), "-o", str(tmp_path / "out.json")])

    def test_scale_must_be_positive(self, tmp_path):
        input_path = write_json(tmp_path / "in.json", SQUARE_SEGMENTS)
        with pytest.raises(SystemExit):
            parse_args(["-i", input_path, "-o", str(tmp_path / "out.json"), "--scale", "-1"])

    def test_output_directory_created(self, tmp_path):
        input_path = write_json(tmp_path / "in.json", SQUARE_SEGMENTS)
        output = tmp_path / "nested" / "out.json"

        parse_args(["-i", input_path, "-o", str(output)])

        assert output.parent.exists()


class TestReadGeometry:
    """Tests for read_geometry."""

    def test_bare_segment_list(self, tmp_path):
        geometry, metadata = read_geometry(write_json(tmp_path / "in.json", SQUARE_SEGMENTS))
        assert isinstance(geometry, Segments)
        assert metadata == {}

    def test_bare_polyline_list(self, tmp_path):
        geometry, _ = read_geometry(write_json(tmp_path / "in.json", [SQUARE_POLYLINE]))
        assert isinstance(geometry, Polylines)

    def test_keyed_documents(self, tmp_path):
        polylines, metadata = read_geometry(write_json(
            tmp_path / "a.json",
            {"polylines": [SQUARE_POLYLINE], "metadata": {"px_to_meters": 0.01}},
        ))
        lines, _ = read_geometry(write_json(tmp_path / "b.json", {"lines": SQUARE_SEGMENTS}))

        assert isinstance(polylines, Polylines)
        assert metadata == {"px_to_meters": 0.01}
        assert isinstance(lines, Segments)

    def test_unrecognized_document(self, tmp_path):
        with pytest.raises(ValueError):
            read_geometry(write_json(tmp_path / "in.json", {"shapes": []}))


class TestRun:
    """End-to-end CLI runs."""

    def test_writes_topology_result(self, tmp_path):
        output = tmp_path / "out.json"
        args = parse_args([
            "-i", write_json(tmp_path / "in.json", SQUARE_SEGMENTS),
            "-o", str(output),
            "--scale", "0.05",
        ])

        run(args)

        data = json.loads(output.read_text())
        assert len(data["walls"]) == 4
        assert len(data["rooms"]) == 1
        assert data["meta"]["scale"] == 0.05
        assert len(data["lines"]) == 4
        assert data["diagnostics"] == []

    def test_scale_from_config(self, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text("cleanup:\n  min_area: 50\noutput:\n  scale: 0.25\n")
        output = tmp_path / "out.json"
        args = parse_args([
            "-i", write_json(tmp_path / "in.json", [SQUARE_POLYLINE]),
            "-o", str(output),
            "--config", str(config),
        ])

        document = run(args)

        assert document["meta"]["scale"] == 0.25
        assert len(document["rooms"]) == 1

    def test_validation_accepts_room(self, tmp_path):
        args = parse_args([
            "-i", write_json(tmp_path / "in.json", [SQUARE_POLYLINE]),
            "-o", str(tmp_path / "out.json"),
            "--validate",
        ])
        assert len(run(args)["rooms"]) == 1

    def test_validation_accepts_segment_room(self, tmp_path):
        args = parse_args([
            "-i", write_json(tmp_path / "in.json", SQUARE_SEGMENTS),
            "-o", str(tmp_path / "out.json"),
            "--validate",
        ])

        document = run(args)

        assert len(document["rooms"]) == 1
        assert len(document["walls"]) == 4

    def test_validation_rejects_open_segments(self, tmp_path):
        args = parse_args([
            "-i", write_json(tmp_path / "in.json", SQUARE_SEGMENTS[:2]),
            "-o", str(tmp_path / "out.json"),
            "--validate",
        ])
        with pytest.raises(ValueError, match="No closed loops"):
            run(args)

    def test_validation_rejects_fragments(self, tmp_path):
        args = parse_args([
            "-i", write_json(tmp_path / "in.json", [[[0, 0], [100, 0]]]),
            "-o", str(tmp_path / "out.json"),
            "--validate",
        ])
        with pytest.raises(ValueError, match="Input rejected"):
            run(args)

    def test_main_exits_on_error(self, tmp_path, capsys):
        argv = [
            "-i", write_json(tmp_path / "in.json", [[[0, 0], [100, 0]]]),
            "-o", str(tmp_path / "out.json"),
            "--validate",
        ]

        with pytest.raises(SystemExit) as exc_info:
            main(argv)

        assert exc_info.value.code == 1
        assert "Input rejected" in capsys.readouterr().out

    def test_main_success(self, tmp_path):
        output = tmp_path / "out.json"
        main(["-i", write_json(tmp_path / "in.json", SQUARE_SEGMENTS), "-o", str(output)])
        assert output.exists()


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
