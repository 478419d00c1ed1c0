"""
Orthogonal Snapping Module

Snaps nearly axis-aligned segments to exactly 0, 90, 180 or 270 degrees
(and optionally to the 45 degree diagonals). The start point of a snapped
segment never moves; the end point is recomputed from the original length.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from ..constants import (
    DEFAULT_SNAP_TOLERANCE_DEG,
    DEFAULT_SNAP_TOLERANCE_RAD,
    DEFAULT_SNAP_GRID_SIZE,
    DIAGONAL_TARGET_ANGLES,
)
from ..geometry.primitives import (
    TWO_PI,
    Point,
    line_angle,
    normalize_angle,
    round_half_up,
)
from ..geometry.segment import Segment

logger = logging.getLogger(__name__)

# Exact unit directions for 0, 90, 180, 270 degrees
ORTHOGONAL_DIRECTIONS = (
    (1.0, 0.0),
    (0.0, 1.0),
    (-1.0, 0.0),
    (0.0, -1.0),
)


def _angular_distance(angle: float, target: float) -> float:
    """Smallest distance between an angle in [0, 2π) and a target angle."""
    diff = min(
        abs(angle - target),
        abs(angle - (target + TWO_PI)),
        abs(angle - (target - TWO_PI)),
    )
    return min(diff, TWO_PI - diff)


def nearest_quarter_turn(angle: float) -> int:
    """
    Index (0-3) of the 90 degree multiple nearest to an angle.

    Halfway cases round up, so 45 degrees snaps to 90.
    """
    degrees = math.degrees(angle) % 360
    return round_half_up(degrees / 90) % 4


def snap_angle_with_tolerance(angle: float, tolerance: float = DEFAULT_SNAP_TOLERANCE_RAD) -> Optional[int]:
    """
    Snap an angle to the nearest quarter turn if it is close enough.

    Args:
        angle: Angle in radians
        tolerance: Max angular distance in radians (inclusive)

    Returns:
        Quarter turn index (0-3), or None if outside tolerance
    """
    normalized = normalize_angle(angle)
    quarter = nearest_quarter_turn(normalized)
    if _angular_distance(normalized, quarter * math.pi / 2) <= tolerance:
        return quarter
    return None


def _is_snappable(segment: Segment) -> bool:
    return segment.is_finite and segment.length > 0


def _snap_segment(segment: Segment, tolerance: float) -> Segment:
    if not _is_snappable(segment):
        return segment

    quarter = snap_angle_with_tolerance(segment.angle, tolerance)
    if quarter is None:
        return segment

    length = segment.length
    dx, dy = ORTHOGONAL_DIRECTIONS[quarter]
    sx, sy = segment.start
    return segment.with_points(segment.start, (sx + length * dx, sy + length * dy))


def snap_line_to_orthogonal(
    start: Point,
    end: Point,
    tolerance: float = DEFAULT_SNAP_TOLERANCE_RAD
) -> Optional[Segment]:
    """
    Snap a single line to orthogonal orientation.

    Args:
        start: Start point (kept unchanged)
        end: End point
        tolerance: Angle tolerance in radians

    Returns:
        Snapped segment, or None if the line is outside tolerance
    """
    segment = Segment(start=start, end=end)
    if not _is_snappable(segment):
        return None
    if snap_angle_with_tolerance(segment.angle, tolerance) is None:
        return None
    return _snap_segment(segment, tolerance)


def snap_lines_to_orthogonal(
    segments: Sequence[Segment],
    tolerance: float = DEFAULT_SNAP_TOLERANCE_RAD
) -> List[Segment]:
    """Snap every segment within tolerance (radians); others pass through."""
    return [_snap_segment(segment, tolerance) for segment in segments]


def snap_orthogonal(
    segments: Sequence[Segment],
    tolerance_deg: float = DEFAULT_SNAP_TOLERANCE_DEG
) -> List[Segment]:
    """Snap segments to orthogonal with a tolerance given in degrees."""
    return snap_lines_to_orthogonal(segments, math.radians(tolerance_deg))


def snap_to_45_degrees(
    segments: Sequence[Segment],
    tolerance_deg: float = DEFAULT_SNAP_TOLERANCE_DEG
) -> List[Segment]:
    """
    Snap segments to the 45, 135, 225 or 315 degree diagonals.

    Targets are tried in that order and the first one within tolerance wins.

    Args:
        segments: Segments to snap
        tolerance_deg: Angle tolerance in degrees

    Returns:
        List of segments, diagonal ones snapped
    """
    tolerance = math.radians(tolerance_deg)
    snapped = []

    for segment in segments:
        if not _is_snappable(segment):
            snapped.append(segment)
            continue

        angle = normalize_angle(segment.angle)
        for target in DIAGONAL_TARGET_ANGLES:
            if _angular_distance(angle, target) <= tolerance:
                length = segment.length
                sx, sy = segment.start
                end = (sx + length * math.cos(target), sy + length * math.sin(target))
                segment = segment.with_points(segment.start, end)
                break

        snapped.append(segment)

    return snapped


def snap_to_grid(point: Point, grid_size: float) -> Point:
    """Round a point to the nearest multiple of grid_size on both axes."""
    return (
        float(round_half_up(point[0] / grid_size) * grid_size),
        float(round_half_up(point[1] / grid_size) * grid_size),
    )


def _snap_endpoints_to_grid(segments: Sequence[Segment], grid_size: float) -> List[Segment]:
    result = []
    for segment in segments:
        if segment.is_finite:
            segment = segment.with_points(
                snap_to_grid(segment.start, grid_size),
                snap_to_grid(segment.end, grid_size),
            )
        result.append(segment)
    return result


def snap_lines(
    segments: Sequence[Segment],
    tolerance_deg: float = DEFAULT_SNAP_TOLERANCE_DEG,
    use_45_deg: bool = False,
    grid_size: float = 0
) -> List[Segment]:
    """
    Snap nearly-straight lines to 0/90/180/270 degrees, and to 45 if enabled.

    Args:
        segments: Segments to snap
        tolerance_deg: Angle tolerance in degrees
        use_45_deg: Also snap to the diagonals after the orthogonal pass
        grid_size: If > 0, round endpoints to this grid first

    Returns:
        New list of segments (input is not modified)
    """
    if not segments:
        return []

    snapped = list(segments)
    if grid_size > 0:
        snapped = _snap_endpoints_to_grid(snapped, grid_size)

    snapped = snap_orthogonal(snapped, tolerance_deg)

    if use_45_deg:
        snapped = snap_to_45_degrees(snapped, tolerance_deg)

    changed = sum(1 for before, after in zip(segments, snapped) if before != after)
    logger.debug(f"Snapping: {changed} of {len(snapped)} segments adjusted")

    return snapped


def snap_to_orthogonal(
    segments: Sequence[Segment],
    tolerance: float = DEFAULT_SNAP_TOLERANCE_RAD,
    grid_size: float = DEFAULT_SNAP_GRID_SIZE
) -> List[Segment]:
    """
    Snap endpoints to a grid, then snap lines to orthogonal.

    Args:
        segments: Segments to snap
        tolerance: Angle tolerance in radians
        grid_size: Grid size for endpoint snapping (0 disables)

    Returns:
        Snapped segments
    """
    snapped = list(segments)
    if grid_size > 0:
        snapped = _snap_endpoints_to_grid(snapped, grid_size)
    return snap_lines_to_orthogonal(snapped, tolerance)


def bucket_angles(
    angles: Sequence[float],
    tolerance: float = DEFAULT_SNAP_TOLERANCE_RAD
) -> Dict[int, List[Tuple[float, float, int]]]:
    """
    Group angles into 0, 90, 180 and 270 degree buckets.

    Angles outside tolerance of every quarter turn are left out.

    Args:
        angles: Angles in radians
        tolerance: Angle tolerance in radians

    Returns:
        Dict keyed by degrees, each a list of (angle, snapped_angle, index)
    """
    buckets: Dict[int, List[Tuple[float, float, int]]] = {0: [], 90: [], 180: [], 270: []}

    for index, angle in enumerate(angles):
        quarter = snap_angle_with_tolerance(angle, tolerance)
        if quarter is not None:
            buckets[quarter * 90].append((angle, quarter * math.pi / 2, index))

    return buckets


def dominant_orthogonal_direction(
    segments: Sequence[Segment],
    tolerance: float = DEFAULT_SNAP_TOLERANCE_RAD
) -> Optional[float]:
    """
    Find the most common orthogonal direction among segments.

    Ties go to the lower angle.

    Returns:
        Dominant angle in radians, or None if no segment is near orthogonal
    """
    if not segments:
        return None

    angles = [line_angle(s.start, s.end) for s in segments if s.is_finite]
    if not angles:
        return None

    buckets = bucket_angles(angles, tolerance)

    dominant_key = None
    max_count = 0
    for key, bucket in buckets.items():
        if len(bucket) > max_count:
            max_count = len(bucket)
            dominant_key = key

    if dominant_key is None:
        return None
    return math.radians(dominant_key)
