"""
Gap Bridger Module

Closes small gaps between aligned segments whose endpoints nearly touch,
replacing each bridged pair with one segment spanning both.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..constants import DEFAULT_MAX_GAP, BRIDGE_ANGLE_TOLERANCE_RAD
from ..geometry.primitives import (
    Point,
    angles_equivalent,
    distance,
    is_finite_point,
    round_half_up,
)
from ..geometry.segment import Segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointEntry:
    """One segment endpoint stored in the grid."""
    order: int
    segment_index: int
    is_start: bool
    point: Point


class EndpointGrid:
    """
    Integer bucket index of segment endpoints.

    Each endpoint is filed under its coordinates rounded to the nearest
    integer (halves round up). Lookups return entries in insertion order.
    """

    def __init__(self):
        self._cells: Dict[Tuple[int, int], List[EndpointEntry]] = defaultdict(list)
        self._count = 0

    @staticmethod
    def cell_key(point: Point) -> Tuple[int, int]:
        return (round_half_up(point[0]), round_half_up(point[1]))

    def add(self, segment_index: int, is_start: bool, point: Point) -> None:
        if not is_finite_point(point):
            return
        entry = EndpointEntry(self._count, segment_index, is_start, point)
        self._cells[self.cell_key(point)].append(entry)
        self._count += 1

    @classmethod
    def from_segments(cls, segments: Sequence[Segment]) -> "EndpointGrid":
        grid = cls()
        for index, segment in enumerate(segments):
            grid.add(index, True, segment.start)
            grid.add(index, False, segment.end)
        return grid

    def near(self, point: Point, radius: float) -> List[EndpointEntry]:
        """
        Entries in every cell overlapping the square of the given radius.

        Callers still need to check the actual distance.
        """
        if not is_finite_point(point):
            return []

        x_min = round_half_up(point[0] - radius)
        x_max = round_half_up(point[0] + radius)
        y_min = round_half_up(point[1] - radius)
        y_max = round_half_up(point[1] + radius)

        found = []
        for cx in range(x_min, x_max + 1):
            for cy in range(y_min, y_max + 1):
                found.extend(self._cells.get((cx, cy), ()))

        found.sort(key=lambda e: e.order)
        return found

    def __len__(self) -> int:
        return self._count


def connect_segments(
    line1: Segment,
    line2: Segment,
    line1_at_start: bool,
    line2_at_start: bool
) -> Segment:
    """
    Join two segments across the gap between their touching endpoints.

    The result runs between the two far endpoints and keeps line1's
    direction and thickness.

    Args:
        line1: Segment being extended
        line2: Segment being absorbed
        line1_at_start: True if the gap is at line1's start
        line2_at_start: True if the gap is at line2's start

    Returns:
        Bridged segment
    """
    far2 = line2.end if line2_at_start else line2.start
    if line1_at_start:
        return line1.with_points(far2, line1.end)
    return line1.with_points(line1.start, far2)


def _find_partner(
    segments: Sequence[Segment],
    grid: EndpointGrid,
    index: int,
    consumed: Set[int],
    max_gap: float
) -> Optional[Tuple[bool, EndpointEntry]]:
    line1 = segments[index]
    angle1 = line1.angle

    for at_start, endpoint in ((True, line1.start), (False, line1.end)):
        for entry in grid.near(endpoint, max_gap):
            if entry.segment_index == index or entry.segment_index in consumed:
                continue

            gap = distance(endpoint, entry.point)
            if not (0 < gap <= max_gap):
                continue

            if angles_equivalent(angle1, segments[entry.segment_index].angle, BRIDGE_ANGLE_TOLERANCE_RAD):
                return at_start, entry

    return None


def bridge_gaps(
    segments: Sequence[Segment],
    max_gap: float = DEFAULT_MAX_GAP
) -> List[Segment]:
    """
    Bridge small gaps between aligned segment endpoints.

    Algorithm:
    1. Index every endpoint in an integer grid
    2. For each segment in order, look for another segment's endpoint
       within max_gap whose orientation matches
    3. On the first match, replace the segment with one spanning both
       and drop the partner

    Each segment takes part in at most one bridge per call.

    Args:
        segments: Segments to bridge
        max_gap: Max endpoint gap to bridge

    Returns:
        Segments with bridged pairs fused, in input order
    """
    if len(segments) < 2:
        return list(segments)

    grid = EndpointGrid.from_segments(segments)
    result = list(segments)
    consumed: Set[int] = set()
    removed: Set[int] = set()

    for i in range(len(result)):
        if i in consumed:
            continue

        match = _find_partner(result, grid, i, consumed, max_gap)
        if match is None:
            continue

        at_start, entry = match
        result[i] = connect_segments(result[i], result[entry.segment_index], at_start, entry.is_start)
        consumed.update((i, entry.segment_index))
        removed.add(entry.segment_index)

    logger.info(f"Gap bridger: {len(removed)} gaps bridged, {len(segments)} -> {len(segments) - len(removed)} segments")

    return [segment for index, segment in enumerate(result) if index not in removed]
