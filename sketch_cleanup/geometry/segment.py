"""
Segment Module

Line segment and polyline value types plus the parsers that turn raw tracer
output into them.
"""

import logging
import math
from dataclasses import dataclass, replace
from numbers import Real
from typing import Any, List, Optional, Tuple

from ..constants import MIN_SEGMENT_LENGTH
from .primitives import (
    Point,
    distance,
    is_finite_point,
    line_angle,
    midpoint,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    """A traced line segment with optional wall thickness."""
    start: Point
    end: Point
    thickness: Optional[float] = None

    @property
    def length(self) -> float:
        """Calculate segment length."""
        return distance(self.start, self.end)

    @property
    def angle(self) -> float:
        """Direction angle in radians (0 to 2π)."""
        return line_angle(self.start, self.end)

    @property
    def midpoint(self) -> Point:
        """Get the midpoint of the segment."""
        return midpoint(self.start, self.end)

    @property
    def is_finite(self) -> bool:
        """True if every coordinate is a finite number."""
        return is_finite_point(self.start) and is_finite_point(self.end)

    @property
    def is_valid(self) -> bool:
        """True if finite and longer than MIN_SEGMENT_LENGTH."""
        return self.is_finite and self.length > MIN_SEGMENT_LENGTH

    def with_points(self, start: Point, end: Point) -> "Segment":
        """Copy of this segment with new endpoints, thickness kept."""
        return replace(self, start=start, end=end)

    def distance_to_point(self, point: Point) -> float:
        """Calculate perpendicular distance from point to line."""
        x0, y0 = point
        x1, y1 = self.start
        x2, y2 = self.end

        line_len = self.length
        if line_len == 0:
            return math.sqrt((x0 - x1) ** 2 + (y0 - y1) ** 2)

        numerator = abs((y2 - y1) * x0 - (x2 - x1) * y0 + x2 * y1 - y2 * x1)
        return numerator / line_len

    def to_dict(self) -> dict:
        """Convert to the tracer wire format."""
        data = {
            "start": [self.start[0], self.start[1]],
            "end": [self.end[0], self.end[1]],
        }
        if self.thickness is not None:
            data["thickness"] = self.thickness
        return data

    @classmethod
    def from_obj(cls, obj: Any) -> Optional["Segment"]:
        """
        Parse a segment from tracer output.

        Accepted shapes:
            {"start": [x, y], "end": [x, y], "thickness": t}
            {"x1": .., "y1": .., "x2": .., "y2": ..}
            ((x, y), (x, y))
            an existing Segment

        Returns:
            Segment, or None if the object is structurally malformed
        """
        if isinstance(obj, Segment):
            return obj

        thickness = None
        if isinstance(obj, dict):
            if "start" in obj and "end" in obj:
                start = parse_point(obj["start"])
                end = parse_point(obj["end"])
            elif all(k in obj for k in ("x1", "y1", "x2", "y2")):
                start = parse_point((obj["x1"], obj["y1"]))
                end = parse_point((obj["x2"], obj["y2"]))
            else:
                return None
            raw_thickness = obj.get("thickness")
            if _is_number(raw_thickness):
                thickness = float(raw_thickness)
        elif isinstance(obj, (list, tuple)) and len(obj) == 2:
            start = parse_point(obj[0])
            end = parse_point(obj[1])
        else:
            return None

        if start is None or end is None:
            return None
        return cls(start=start, end=end, thickness=thickness)


@dataclass(frozen=True)
class Polyline:
    """An ordered traced path of two or more points."""
    points: Tuple[Point, ...]

    @property
    def is_closed(self) -> bool:
        """True if the path ends exactly where it starts."""
        return len(self.points) > 2 and self.points[0] == self.points[-1]

    def closes_within(self, tolerance: float) -> bool:
        """True if first and last points are closer than tolerance."""
        return distance(self.points[0], self.points[-1]) < tolerance

    def to_segments(self) -> List[Segment]:
        """Split into consecutive point-pair segments."""
        return [
            Segment(start=self.points[i], end=self.points[i + 1])
            for i in range(len(self.points) - 1)
        ]

    @classmethod
    def from_obj(cls, obj: Any) -> Optional["Polyline"]:
        """
        Parse a polyline from tracer output.

        Accepts a list of [x, y] points or a {"points": [...], "closed": bool}
        object. Malformed points are skipped; fewer than two usable points
        yields None.
        """
        if isinstance(obj, Polyline):
            return obj
        if isinstance(obj, dict):
            obj = obj.get("points")
        if not isinstance(obj, (list, tuple)):
            return None

        points = []
        for raw in obj:
            point = parse_point(raw)
            if point is not None:
                points.append(point)

        if len(points) < 2:
            return None
        return cls(points=tuple(points))


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_point(raw: Any) -> Optional[Point]:
    """
    Parse an (x, y) point from a list, tuple or {"x", "y"} dict.

    Extra coordinates (e.g. z) are ignored. Non-numeric input yields None;
    non-finite numbers are kept so later stages can drop them.
    """
    if isinstance(raw, dict):
        raw = (raw.get("x"), raw.get("y"))
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        return None
    x, y = raw[0], raw[1]
    if not (_is_number(x) and _is_number(y)):
        return None
    return (float(x), float(y))


def parse_segments(raw: Any) -> List[Segment]:
    """
    Parse a list of raw segments, silently dropping malformed entries.

    Args:
        raw: List of segment-like objects

    Returns:
        List of Segment objects (empty for non-list input)
    """
    if not isinstance(raw, (list, tuple)):
        return []

    segments = []
    for item in raw:
        segment = Segment.from_obj(item)
        if segment is not None:
            segments.append(segment)

    dropped = len(raw) - len(segments)
    if dropped:
        logger.debug(f"Dropped {dropped} malformed segments")
    return segments


def parse_polylines(raw: Any) -> List[Polyline]:
    """Parse a list of raw polylines, silently dropping malformed entries."""
    if not isinstance(raw, (list, tuple)):
        return []

    polylines = []
    for item in raw:
        polyline = Polyline.from_obj(item)
        if polyline is not None:
            polylines.append(polyline)

    dropped = len(raw) - len(polylines)
    if dropped:
        logger.debug(f"Dropped {dropped} malformed polylines")
    return polylines
