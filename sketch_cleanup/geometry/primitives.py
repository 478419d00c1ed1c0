"""
Geometry Primitives Module

Distance, angle, projection and intersection helpers shared by every
cleanup stage. Points are (x, y) tuples; angles are radians.
"""

import math
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import LineString

Point = Tuple[float, float]

TWO_PI = 2 * math.pi


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 always rounding up."""
    return int(math.floor(value + 0.5))


def is_finite_point(point: Sequence[float]) -> bool:
    """Check that both coordinates of a point are finite numbers."""
    return math.isfinite(point[0]) and math.isfinite(point[1])


def distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Calculate distance between two points."""
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    return math.sqrt(dx * dx + dy * dy)


def line_length(start: Sequence[float], end: Sequence[float]) -> float:
    """Calculate the length of a line segment."""
    return distance(start, end)


def line_angle(start: Sequence[float], end: Sequence[float]) -> float:
    """
    Calculate the direction of a line segment.

    Args:
        start: Start point (x, y)
        end: End point (x, y)

    Returns:
        Angle in radians in [0, 2π), measured from the positive x-axis
    """
    angle = math.atan2(end[1] - start[1], end[0] - start[0])
    return angle + TWO_PI if angle < 0 else angle


def normalize_angle(angle: float) -> float:
    """Normalize an angle to the [0, 2π) range."""
    normalized = angle
    while normalized < 0:
        normalized += TWO_PI
    while normalized >= TWO_PI:
        normalized -= TWO_PI
    return normalized


def normalize_angle_diff(diff: float) -> float:
    """Fold an angle difference into [0, π]."""
    normalized = diff
    while normalized > math.pi:
        normalized -= math.pi
    while normalized < 0:
        normalized += math.pi
    return normalized


def angles_equivalent(angle1: float, angle2: float, tolerance: float) -> bool:
    """
    Check whether two directions are the same undirected line orientation.

    Args:
        angle1: First angle in radians
        angle2: Second angle in radians
        tolerance: Maximum difference in radians (exclusive)

    Returns:
        True if the angles are equal or opposite within tolerance
    """
    diff = abs(normalize_angle_diff(angle1 - angle2))
    return diff < tolerance or abs(diff - math.pi) < tolerance


def is_parallel(
    line1_start: Sequence[float],
    line1_end: Sequence[float],
    line2_start: Sequence[float],
    line2_end: Sequence[float],
    tolerance: float = 0.01
) -> bool:
    """Check if two lines are parallel or anti-parallel within tolerance."""
    return angles_equivalent(
        line_angle(line1_start, line1_end),
        line_angle(line2_start, line2_end),
        tolerance,
    )


def midpoint(start: Sequence[float], end: Sequence[float]) -> Point:
    """Get the midpoint of a segment."""
    return ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)


def project_point(
    point: Sequence[float],
    line_start: Sequence[float],
    line_end: Sequence[float]
) -> Point:
    """
    Project a point onto a line segment, clamped to the segment.

    Args:
        point: Point to project
        line_start: Segment start
        line_end: Segment end

    Returns:
        Closest point on the segment
    """
    sx, sy = line_start[0], line_start[1]
    dx = line_end[0] - sx
    dy = line_end[1] - sy
    length_sq = dx * dx + dy * dy

    if length_sq < 1e-10:
        return (sx, sy)

    t = ((point[0] - sx) * dx + (point[1] - sy) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return (sx + t * dx, sy + t * dy)


def project_point_on_line(
    point: Sequence[float],
    line_start: Sequence[float],
    line_end: Sequence[float]
) -> Point:
    """Project a point onto the infinite line through two points."""
    sx, sy = line_start[0], line_start[1]
    dx = line_end[0] - sx
    dy = line_end[1] - sy
    length_sq = dx * dx + dy * dy

    if length_sq < 1e-10:
        return (sx, sy)

    t = ((point[0] - sx) * dx + (point[1] - sy) * dy) / length_sq
    return (sx + t * dx, sy + t * dy)


def perpendicular_distance(
    point: Sequence[float],
    line_start: Sequence[float],
    line_end: Sequence[float]
) -> float:
    """Distance from a point to the infinite line through two points."""
    return distance(point, project_point_on_line(point, line_start, line_end))


def intersect_segments(
    seg1_start: Sequence[float],
    seg1_end: Sequence[float],
    seg2_start: Sequence[float],
    seg2_end: Sequence[float]
) -> Optional[Point]:
    """
    Find the intersection point of two line segments.

    Returns:
        Intersection point, or None if the segments are parallel or miss
    """
    x1, y1 = seg1_start[0], seg1_start[1]
    x2, y2 = seg1_end[0], seg1_end[1]
    x3, y3 = seg2_start[0], seg2_start[1]
    x4, y4 = seg2_end[0], seg2_end[1]

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < 1e-10:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    if 0 <= t <= 1 and 0 <= u <= 1:
        return (x1 + t * (x2 - x1), y1 + t * (y2 - y1))
    return None


def intersect_lines(
    line1_start: Sequence[float],
    line1_end: Sequence[float],
    line2_start: Sequence[float],
    line2_end: Sequence[float]
) -> Optional[Point]:
    """Find the intersection of two infinite lines, or None if parallel."""
    x1, y1 = line1_start[0], line1_start[1]
    x2, y2 = line1_end[0], line1_end[1]
    x3, y3 = line2_start[0], line2_start[1]
    x4, y4 = line2_end[0], line2_end[1]

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < 1e-10:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    return (x1 + t * (x2 - x1), y1 + t * (y2 - y1))


def signed_area(points: Sequence[Sequence[float]]) -> float:
    """
    Calculate the signed shoelace area of a polygon.

    Works for open rings and closed rings (first == last) alike, since the
    closing edge of a closed ring contributes zero.

    Returns:
        Area, positive for counter-clockwise rings
    """
    if len(points) < 3:
        return 0.0

    area = 0.0
    n = len(points)
    for i in range(n):
        j = (i + 1) % n
        area += points[i][0] * points[j][1]
        area -= points[j][0] * points[i][1]
    return area / 2


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    """Absolute shoelace area of a polygon."""
    return abs(signed_area(points))


def path_length(points: Sequence[Sequence[float]]) -> float:
    """Total length of a polyline."""
    if len(points) < 2:
        return 0.0
    return LineString([(p[0], p[1]) for p in points]).length


def simplify_polyline(points: Sequence[Sequence[float]], tolerance: float = 1.0) -> List[Point]:
    """
    Simplify a polyline with the Douglas-Peucker algorithm.

    Args:
        points: Polyline points
        tolerance: Maximum deviation of dropped points

    Returns:
        Simplified list of points (endpoints always kept)
    """
    if len(points) <= 2:
        return [(p[0], p[1]) for p in points]

    line = LineString([(p[0], p[1]) for p in points])
    simplified = line.simplify(tolerance, preserve_topology=False)
    return [(x, y) for x, y in simplified.coords]
