"""
Input Validation Module

Quality gate for traced polylines: counts usable walls and closed loops
and rejects input too fragmented to clean. Never modifies the geometry.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..constants import (
    VALIDATION_MIN_WALL_LENGTH,
    VALIDATION_MIN_STRAIGHTNESS,
    VALIDATION_MIN_WALLS,
    VALIDATION_MIN_CLOSED_LOOPS,
    VALIDATION_CLOSURE_TOLERANCE,
    VALIDATION_LOG_SAMPLE_COUNT,
)
from ..geometry.primitives import Point, distance, path_length
from ..geometry.segment import Polyline

logger = logging.getLogger(__name__)


@dataclass
class WallCandidate:
    """A straight run counted as one wall by the validator."""
    start: Point
    end: Point
    length: float
    straightness: float = 1.0


@dataclass
class ValidationResult:
    """Outcome of validate_input."""
    valid: bool
    error: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {"valid": self.valid, "stats": dict(self.stats)}
        if self.error is not None:
            data["error"] = self.error
        return data


def calculate_straightness(points: Sequence[Point]) -> float:
    """
    Ratio of chord length to path length (1.0 = perfectly straight).

    Closed or degenerate paths score 0.
    """
    if len(points) < 2:
        return 0.0
    if len(points) == 2:
        return 1.0

    direct = distance(points[0], points[-1])
    if direct < 1e-6:
        return 0.0

    total = path_length(points)
    if total < 1e-6:
        return 0.0

    return direct / total


def extract_line_segments(
    polylines: Sequence[Polyline],
    min_wall_length: float = VALIDATION_MIN_WALL_LENGTH,
    min_straightness: float = VALIDATION_MIN_STRAIGHTNESS,
    closure_tolerance: float = VALIDATION_CLOSURE_TOLERANCE
) -> List[WallCandidate]:
    """
    Collect wall candidates from polylines.

    A straight, long polyline counts as a single wall. Otherwise each of
    its segments long enough counts, plus the closing segment of a closed
    polyline.

    Args:
        polylines: Parsed polylines
        min_wall_length: Minimum candidate length
        min_straightness: Minimum chord/path ratio for the whole-polyline case
        closure_tolerance: First/last distance below which a polyline is closed

    Returns:
        Wall candidates
    """
    candidates = []

    for polyline in polylines:
        points = polyline.points
        straightness = calculate_straightness(points)
        direct = distance(points[0], points[-1])

        if straightness >= min_straightness and direct >= min_wall_length:
            candidates.append(WallCandidate(points[0], points[-1], direct, straightness))
            continue

        for start, end in zip(points, points[1:]):
            length = distance(start, end)
            if length >= min_wall_length:
                candidates.append(WallCandidate(start, end, length))

        if len(points) >= 3 and direct < closure_tolerance and direct >= min_wall_length:
            candidates.append(WallCandidate(points[-1], points[0], direct))

    return candidates


def count_closed_loops(
    polylines: Sequence[Polyline],
    closure_tolerance: float = VALIDATION_CLOSURE_TOLERANCE
) -> int:
    """Count polylines of 3+ points whose ends are within closure_tolerance."""
    return sum(
        1 for p in polylines
        if len(p.points) >= 3 and distance(p.points[0], p.points[-1]) <= closure_tolerance
    )


def _parse(polylines: Sequence[Any]) -> List[Polyline]:
    parsed = []
    for item in polylines:
        polyline = Polyline.from_obj(item)
        if polyline is not None:
            parsed.append(polyline)
    return parsed


def _wall_stats(walls: Sequence[WallCandidate]) -> Dict[str, float]:
    if not walls:
        return {"average_wall_length": 0.0, "min_wall_length": 0.0, "max_wall_length": 0.0}

    lengths = np.array([w.length for w in walls])
    return {
        "average_wall_length": float(np.mean(lengths)),
        "min_wall_length": float(lengths.min()),
        "max_wall_length": float(lengths.max()),
    }


def validate_input(
    polylines: Any,
    min_wall_length: float = VALIDATION_MIN_WALL_LENGTH,
    min_straightness: float = VALIDATION_MIN_STRAIGHTNESS,
    min_walls: int = VALIDATION_MIN_WALLS,
    min_closed_loops: int = VALIDATION_MIN_CLOSED_LOOPS,
    closure_tolerance: float = VALIDATION_CLOSURE_TOLERANCE
) -> ValidationResult:
    """
    Check that traced polylines are good enough to clean.

    Args:
        polylines: List of polylines (point lists or {"points": [...]})
        min_wall_length: Minimum wall length
        min_straightness: Minimum straightness for whole-polyline walls
        min_walls: Minimum wall count
        min_closed_loops: Minimum closed polyline count
        closure_tolerance: Distance for a polyline to count as closed

    Returns:
        ValidationResult; error joins every failed check with "; "
    """
    if not isinstance(polylines, (list, tuple)) or not polylines:
        return ValidationResult(
            valid=False,
            error="No polylines provided",
            stats={
                "polyline_count": 0,
                "segment_count": 0,
                "wall_count": 0,
                "closed_loops": 0,
                **_wall_stats([]),
            },
        )

    parsed = _parse(polylines)
    segments = extract_line_segments(parsed, min_wall_length, min_straightness, closure_tolerance)
    walls = [s for s in segments if s.length >= min_wall_length]
    closed_loops = count_closed_loops(parsed, closure_tolerance)

    stats = {
        "polyline_count": len(polylines),
        "segment_count": len(segments),
        "wall_count": len(walls),
        "closed_loops": closed_loops,
        **_wall_stats(walls),
    }

    errors = []
    if len(walls) < min_walls:
        errors.append(f"Insufficient walls: {len(walls)} found, minimum {min_walls} required")

    if closed_loops < min_closed_loops:
        errors.append(
            f"No closed loops detected: {closed_loops} found, minimum {min_closed_loops} required"
        )

    if segments and not walls:
        errors.append(
            f"All walls rejected: {len(segments)} segments found, but none meet quality "
            f"criteria (minLength: {min_wall_length}px)"
        )

    if errors:
        logger.info(f"Input rejected: {'; '.join(errors)}")

    return ValidationResult(
        valid=not errors,
        error="; ".join(errors) if errors else None,
        stats=stats,
    )


def log_input_geometry(polylines: Sequence[Any], metadata: Optional[Dict[str, Any]] = None) -> None:
    """
    Log a debug summary of input polylines.

    Args:
        polylines: Raw polylines
        metadata: Optional dict with "image_size" and "px_to_meters"
    """
    metadata = metadata or {}

    logger.debug("Input geometry:")
    logger.debug(f"  Polylines: {len(polylines)}")
    if metadata.get("image_size"):
        logger.debug(f"  Image size: {metadata['image_size']}")
    if metadata.get("px_to_meters"):
        logger.debug(f"  Scale: {metadata['px_to_meters']} m/pixel")

    sample_count = min(VALIDATION_LOG_SAMPLE_COUNT, len(polylines))
    logger.debug(f"  Sample polylines (first {sample_count}):")

    for i in range(sample_count):
        polyline = Polyline.from_obj(polylines[i])
        if polyline is None:
            logger.debug(f"    [{i}]: invalid")
            continue

        points = polyline.points
        first, last = points[0], points[-1]
        state = "closed" if distance(first, last) < VALIDATION_CLOSURE_TOLERANCE else "open"
        logger.debug(
            f"    [{i}]: {len(points)} points, {path_length(points):.1f}px length, {state}"
        )
        logger.debug(
            f"         first: [{first[0]:.1f}, {first[1]:.1f}], last: [{last[0]:.1f}, {last[1]:.1f}]"
        )

    parsed = _parse(polylines)
    segments = extract_line_segments(parsed)
    stats = _wall_stats(segments)
    logger.debug("  Aggregate statistics:")
    logger.debug(f"    Total segments: {len(segments)}")
    logger.debug(f"    Closed loops: {count_closed_loops(parsed)}")
    if segments:
        logger.debug(f"    Average wall length: {stats['average_wall_length']:.1f}px")
        logger.debug(f"    Min wall length: {stats['min_wall_length']:.1f}px")
        logger.debug(f"    Max wall length: {stats['max_wall_length']:.1f}px")

    for i in range(min(3, len(polylines))):
        logger.debug(f"    Polyline {i}: {json.dumps(polylines[i], default=str)}")
