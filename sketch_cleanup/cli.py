"""
Command Line Interface Module

Parses command-line arguments and runs the cleanup on a tracer JSON file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import CleanupOptions, load_options, load_settings
from .constants import DEFAULT_RESULT_SCALE
from .contract import build_topology_result, validate_topology_result
from .pipeline import Polylines, Segments, cleanup, segments_to_polylines
from .topology.validator import log_input_geometry, validate_input

logger = logging.getLogger(__name__)

SEGMENT_KEYS = ("start", "x1")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the cleanup."""
    parser = argparse.ArgumentParser(
        prog="sketch_cleanup",
        description="Clean hand-drawn floor plan geometry and detect rooms",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m sketch_cleanup.cli -i traced.json -o topology.json
  python -m sketch_cleanup.cli -i traced.json -o topology.json --config config/settings.yaml
  python -m sketch_cleanup.cli -i traced.json -o topology.json --validate --verbose
        """
    )

    # Required arguments
    parser.add_argument(
        "-i", "--input",
        required=True,
        help="Input JSON file (segments or polylines)"
    )

    parser.add_argument(
        "-o", "--output",
        required=True,
        help="Output JSON file path"
    )

    # Optional arguments
    parser.add_argument(
        "--config",
        help="YAML settings file (cleanup options under a 'cleanup' section)"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Reject input that fails the quality gate before cleaning"
    )

    parser.add_argument(
        "--scale",
        type=float,
        help=f"Meters per input unit written to the result (default: {DEFAULT_RESULT_SCALE})"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser


def validate_args(args: argparse.Namespace) -> Tuple[bool, str]:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments

    Returns:
        Tuple of (is_valid, error_message)
    """
    input_path = Path(args.input)
    if not input_path.exists():
        return False, f"Input file not found: {args.input}"

    if not input_path.suffix.lower() == ".json":
        return False, f"Input file must be JSON: {args.input}"

    if args.config and not Path(args.config).exists():
        return False, f"Config file not found: {args.config}"

    if args.scale is not None and args.scale <= 0:
        return False, f"Scale must be positive: {args.scale}"

    output_path = Path(args.output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return False, f"Cannot create output directory: {e}"

    return True, ""


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse and validate command-line arguments.

    Args:
        args: Optional list of arguments (uses sys.argv if None)

    Returns:
        Parsed and validated arguments
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    is_valid, error_msg = validate_args(parsed)
    if not is_valid:
        parser.error(error_msg)

    return parsed


def read_geometry(path: str) -> Tuple[Any, Dict[str, Any]]:
    """
    Read tracer output from a JSON file.

    Accepts {"segments": [...]}, {"lines": [...]} or {"polylines": [...]}
    objects (with optional "metadata"), or a bare list whose first element
    decides between segments and polylines.

    Returns:
        (Segments or Polylines, metadata)

    Raises:
        ValueError: If the file holds no recognizable geometry
    """
    with open(path) as f:
        data = json.load(f)

    if isinstance(data, dict):
        metadata = data.get("metadata") or {}
        if "polylines" in data:
            return Polylines(data["polylines"]), metadata
        for key in ("segments", "lines"):
            if key in data:
                return Segments(data[key]), metadata
        raise ValueError(f"No segments or polylines in {path}")

    if isinstance(data, list):
        first = data[0] if data else None
        if isinstance(first, dict) and any(k in first for k in SEGMENT_KEYS):
            return Segments(data), {}
        return Polylines(data), {}

    raise ValueError(f"Unsupported geometry document in {path}")


def _as_polylines(geometry: Any, tolerance: float) -> List[Any]:
    if isinstance(geometry, Polylines):
        return list(geometry.items)
    return segments_to_polylines(geometry.items, tolerance)


def run(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Run the cleanup for parsed arguments and write the result.

    Args:
        args: Parsed command-line arguments

    Returns:
        The document written to args.output

    Raises:
        ValueError: If the input is rejected by the quality gate
    """
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format='%(message)s')

    options = CleanupOptions()
    scale = DEFAULT_RESULT_SCALE
    if args.config:
        options = load_options(args.config)
        output_settings = load_settings(args.config).get("output") or {}
        scale = output_settings.get("scale", scale)
    if args.scale is not None:
        scale = args.scale

    logger.info(f"Processing: {args.input}")
    geometry, metadata = read_geometry(args.input)

    if args.verbose:
        log_input_geometry(_as_polylines(geometry, options.closed_tolerance), metadata)

    if args.validate:
        validation = validate_input(_as_polylines(geometry, options.closed_tolerance))
        if not validation.valid:
            raise ValueError(f"Input rejected: {validation.error}")
        logger.info(
            f"Input accepted: {validation.stats['wall_count']} walls, "
            f"{validation.stats['closed_loops']} closed loops"
        )

    result = cleanup(geometry, options)
    document = build_topology_result(result, scale=scale, options=options)

    is_valid, errors = validate_topology_result(document)
    if not is_valid:
        for error in errors:
            logger.warning(f"  {error['path']}: {error['message']}")

    document["lines"] = [line.to_dict() for line in result.lines]
    document["diagnostics"] = result.diagnostics.to_list()

    with open(args.output, "w") as f:
        json.dump(document, f, indent=2)

    logger.info(
        f"Wrote {args.output}: {len(document['walls'])} walls, "
        f"{len(document['rooms'])} rooms, {len(document['openings'])} openings"
    )
    return document


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    args = parse_args(argv)

    try:
        run(args)
    except KeyboardInterrupt:
        print("\nProcessing cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
