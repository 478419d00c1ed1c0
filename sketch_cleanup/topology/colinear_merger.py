"""
Colinear Merger Module

Joins segments that lie on the same line and are separated by a small gap.
"""

import logging
import math
from typing import List, Sequence

from ..constants import COLINEAR_MERGE_DISTANCE, COLINEAR_ANGLE_TOLERANCE_RAD
from ..geometry.primitives import distance as point_distance
from ..geometry.segment import Segment
from .parallel_merger import group_parallel_lines

logger = logging.getLogger(__name__)


def sort_along_direction(segments: Sequence[Segment]) -> List[Segment]:
    """
    Sort segments by midpoint position along the first segment's direction.

    The sort is stable, so segments at the same position keep input order.
    """
    if not segments:
        return []

    ref_angle = segments[0].angle
    cos_a, sin_a = math.cos(ref_angle), math.sin(ref_angle)

    def projection(segment: Segment) -> float:
        mx, my = segment.midpoint
        return mx * cos_a + my * sin_a

    return sorted(segments, key=projection)


def merge_colinear_segments(
    segments: Sequence[Segment],
    distance: float = COLINEAR_MERGE_DISTANCE,
    angle_tolerance: float = COLINEAR_ANGLE_TOLERANCE_RAD
) -> List[Segment]:
    """
    Merge colinear line segments.

    Segments are grouped by orientation, sorted along the group direction,
    and swept once: whenever the gap from the running segment's end to the
    next segment's start is within distance, the running segment is
    extended to the next segment's end.

    Args:
        segments: Segments to merge
        distance: Max gap between consecutive segments
        angle_tolerance: Orientation tolerance in radians

    Returns:
        Merged segments, group by group in seed order
    """
    if len(segments) < 2:
        return list(segments)

    merged = []

    for group in group_parallel_lines(segments, angle_tolerance):
        if len(group) == 1:
            merged.append(group[0])
            continue

        ordered = sort_along_direction(group)
        current = ordered[0]

        for segment in ordered[1:]:
            gap = point_distance(current.end, segment.start)
            if gap <= distance:
                current = current.with_points(current.start, segment.end)
            else:
                merged.append(current)
                current = segment

        merged.append(current)

    logger.info(f"Colinear merger: {len(segments)} -> {len(merged)} segments")
    return merged
