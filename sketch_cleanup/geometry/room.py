"""
Room Data Structure Module

Defines the Room class: a closed loop of points found by loop detection.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from shapely.geometry import Polygon

from .primitives import Point, path_length, signed_area

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Room:
    """
    Closed polygon detected from connected segments.

    The ring always repeats its first point at the end.
    """
    ring: Tuple[Point, ...]

    @property
    def signed_area(self) -> float:
        """Shoelace area, positive for counter-clockwise rings."""
        return signed_area(self.ring)

    @property
    def area(self) -> float:
        """Absolute shoelace area."""
        return abs(self.signed_area)

    @property
    def perimeter(self) -> float:
        """Length of the closed ring."""
        return path_length(self.ring)

    @property
    def vertices(self) -> List[Point]:
        """Ring points without the repeated closing point."""
        return list(self.ring[:-1])

    @property
    def is_simple(self) -> bool:
        """
        True if the ring does not self-intersect.

        Informational only; self-intersecting rooms are reported, not repaired.
        """
        if len(self.ring) < 4:
            return False
        return self.to_shapely().is_valid

    def to_shapely(self) -> Polygon:
        """Convert to a shapely Polygon."""
        return Polygon(self.ring)

    def to_points(self) -> List[List[float]]:
        """Ring as a list of [x, y] pairs."""
        return [[x, y] for x, y in self.ring]

    def to_dict(self) -> Dict[str, Any]:
        """Convert room to dictionary for JSON serialization."""
        return {
            "polygon": self.to_points(),
            "area": self.area,
        }

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> "Room":
        """
        Build a room from a point sequence, closing it if needed.

        Args:
            points: Open or closed list of (x, y) points

        Returns:
            Room with a closed ring
        """
        ring = [(float(p[0]), float(p[1])) for p in points]
        if ring and ring[0] != ring[-1]:
            ring.append(ring[0])

        room = cls(ring=tuple(ring))
        if len(ring) >= 4 and not room.is_simple:
            logger.warning(f"Room with {len(ring) - 1} vertices self-intersects")
        return room
