"""
Wall Extraction Module

Turns cleaned segments into walls, finds door and window openings in the
gaps between aligned walls, and labels walls exterior or interior.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..constants import (
    MIN_WALL_LENGTH,
    DEFAULT_WALL_THICKNESS,
    DEFAULT_OPENING_THRESHOLD,
    WALL_ANGLE_TOLERANCE_RAD,
    EXTERIOR_WALL_THICKNESS,
    INTERIOR_WALL_THICKNESS,
)
from ..geometry.primitives import Point, angles_equivalent, distance, line_angle, midpoint
from ..geometry.segment import Segment, parse_polylines
from .parallel_merger import group_parallel_indices

logger = logging.getLogger(__name__)


class WallType(str, Enum):
    """Wall classification."""
    EXTERIOR = "exterior"
    INTERIOR = "interior"


class OpeningType(str, Enum):
    """Opening classification by gap width."""
    DOOR = "door"
    WINDOW = "window"


@dataclass(frozen=True)
class Wall:
    """A wall segment with thickness and optional classification."""
    start: Point
    end: Point
    thickness: float = DEFAULT_WALL_THICKNESS
    type: Optional[WallType] = None

    @property
    def length(self) -> float:
        return distance(self.start, self.end)

    @property
    def angle(self) -> float:
        return line_angle(self.start, self.end)

    @property
    def midpoint(self) -> Point:
        return midpoint(self.start, self.end)

    def to_segment(self) -> Segment:
        return Segment(start=self.start, end=self.end, thickness=self.thickness)

    def to_dict(self) -> Dict[str, Any]:
        """Convert wall to dictionary for JSON serialization."""
        data = {
            "start": [self.start[0], self.start[1]],
            "end": [self.end[0], self.end[1]],
            "thickness": self.thickness,
        }
        if self.type is not None:
            data["type"] = self.type.value
        return data


@dataclass(frozen=True)
class Opening:
    """A gap between two aligned walls."""
    start: Point
    end: Point
    width: float
    type: OpeningType
    wall_indices: Tuple[int, int]

    @property
    def position(self) -> Point:
        """Center of the gap."""
        return midpoint(self.start, self.end)

    def to_dict(self) -> Dict[str, Any]:
        """Convert opening to dictionary for JSON serialization."""
        return {
            "start": [self.start[0], self.start[1]],
            "end": [self.end[0], self.end[1]],
            "width": self.width,
            "position": list(self.position),
            "type": self.type.value,
            "walls": list(self.wall_indices),
        }


@dataclass
class WallGeometry:
    """Walls plus the openings found between them."""
    walls: List[Wall] = field(default_factory=list)
    openings: List[Opening] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "walls": [w.to_dict() for w in self.walls],
            "openings": [o.to_dict() for o in self.openings],
        }


def is_wall_candidate(
    segment: Segment,
    min_length: float = MIN_WALL_LENGTH,
    max_length: float = math.inf
) -> bool:
    """Check if a segment's length falls within the wall range."""
    if not segment.is_finite:
        return False
    return min_length <= segment.length <= max_length


def detect_walls(
    segments: Sequence[Segment],
    min_length: float = MIN_WALL_LENGTH,
    max_length: float = math.inf,
    default_thickness: float = DEFAULT_WALL_THICKNESS
) -> List[Wall]:
    """
    Detect walls from segments.

    Args:
        segments: Input segments
        min_length: Minimum wall length
        max_length: Maximum wall length
        default_thickness: Thickness for segments without one

    Returns:
        Walls in input order
    """
    walls = []
    for segment in segments:
        if not is_wall_candidate(segment, min_length, max_length):
            continue
        thickness = segment.thickness if segment.thickness is not None else default_thickness
        walls.append(Wall(start=segment.start, end=segment.end, thickness=thickness))

    logger.debug(f"Wall detection: {len(walls)} of {len(segments)} segments are walls")
    return walls


def sort_walls_along_direction(indices: Sequence[int], walls: Sequence[Wall]) -> List[int]:
    """Stable sort of wall indices by midpoint projection onto the first wall's direction."""
    if not indices:
        return []

    ref_angle = walls[indices[0]].angle
    cos_a, sin_a = math.cos(ref_angle), math.sin(ref_angle)

    def projection(index: int) -> float:
        mx, my = walls[index].midpoint
        return mx * cos_a + my * sin_a

    return sorted(indices, key=projection)


def closest_endpoints(wall1: Wall, wall2: Wall) -> Tuple[float, Point, Point]:
    """
    Closest endpoint pair across two walls.

    Candidates are tried in the order end-start, end-end, start-start,
    start-end; the first of equally close pairs wins.

    Returns:
        (distance, point on wall1, point on wall2)
    """
    candidates = [
        (wall1.end, wall2.start),
        (wall1.end, wall2.end),
        (wall1.start, wall2.start),
        (wall1.start, wall2.end),
    ]

    best = None
    for p1, p2 in candidates:
        gap = distance(p1, p2)
        if best is None or gap < best[0]:
            best = (gap, p1, p2)
    return best


def find_openings(
    walls: Sequence[Wall],
    max_gap_size: float = DEFAULT_OPENING_THRESHOLD
) -> List[Opening]:
    """
    Find openings between aligned walls.

    Walls are grouped by orientation and sorted along their direction;
    each consecutive pair whose closest endpoints are 0 < gap <= max_gap_size
    apart yields an opening. Gaps below half the threshold are doors,
    the rest windows.

    Args:
        walls: Walls to analyze
        max_gap_size: Max gap width for an opening

    Returns:
        Openings, group by group
    """
    openings = []
    if len(walls) < 2:
        return openings

    for group in group_parallel_indices(walls, WALL_ANGLE_TOLERANCE_RAD):
        if len(group) < 2:
            continue

        ordered = sort_walls_along_direction(group, walls)

        for a, b in zip(ordered, ordered[1:]):
            wall1, wall2 = walls[a], walls[b]
            if not angles_equivalent(wall1.angle, wall2.angle, WALL_ANGLE_TOLERANCE_RAD):
                continue

            gap, start, end = closest_endpoints(wall1, wall2)
            if not (0 < gap <= max_gap_size):
                continue

            opening_type = OpeningType.DOOR if gap < max_gap_size / 2 else OpeningType.WINDOW
            openings.append(Opening(
                start=(start[0], start[1]),
                end=(end[0], end[1]),
                width=gap,
                type=opening_type,
                wall_indices=(a, b),
            ))

    logger.debug(f"Found {len(openings)} openings between {len(walls)} walls")
    return openings


def classify_walls(
    walls: Sequence[Wall],
    exterior_thickness: float = EXTERIOR_WALL_THICKNESS,
    interior_thickness: float = INTERIOR_WALL_THICKNESS
) -> List[Wall]:
    """
    Label walls exterior or interior by thickness.

    A wall at or above the midpoint of the two typical thicknesses is
    exterior.
    """
    threshold = (exterior_thickness + interior_thickness) / 2
    return [
        replace(wall, type=WallType.EXTERIOR if wall.thickness >= threshold else WallType.INTERIOR)
        for wall in walls
    ]


def extract_wall_geometry(
    segments: Sequence[Segment],
    min_wall_length: float = MIN_WALL_LENGTH,
    wall_thickness: float = DEFAULT_WALL_THICKNESS,
    opening_threshold: float = DEFAULT_OPENING_THRESHOLD
) -> WallGeometry:
    """
    Extract walls and the openings between them.

    Args:
        segments: Cleaned segments
        min_wall_length: Minimum wall length
        wall_thickness: Thickness for segments without one
        opening_threshold: Max gap width for an opening

    Returns:
        WallGeometry with walls and openings
    """
    if not segments:
        return WallGeometry()

    walls = detect_walls(segments, min_length=min_wall_length, default_thickness=wall_thickness)
    openings = find_openings(walls, opening_threshold)

    logger.info(f"Wall extraction: {len(walls)} walls, {len(openings)} openings")
    return WallGeometry(walls=walls, openings=openings)


def extract_walls(
    polylines: Sequence[Any],
    min_wall_length: float = MIN_WALL_LENGTH,
    wall_thickness: float = DEFAULT_WALL_THICKNESS
) -> List[Wall]:
    """
    Extract walls from polylines.

    Each polyline is split into consecutive segments; non-finite or
    zero-length pieces are skipped.

    Args:
        polylines: Polyline objects or raw point lists
        min_wall_length: Minimum wall length
        wall_thickness: Thickness assigned to every wall

    Returns:
        Walls in polyline order
    """
    if not isinstance(polylines, (list, tuple)):
        return []

    segments = []
    for polyline in parse_polylines(polylines):
        for segment in polyline.to_segments():
            if segment.is_valid:
                segments.append(replace(segment, thickness=wall_thickness))

    return detect_walls(segments, min_length=min_wall_length, default_thickness=wall_thickness)
