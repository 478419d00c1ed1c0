"""
Parallel Merger Module

Fuses groups of near-parallel traced lines into a single line.
Hand sketches often trace one wall as several strokes lying side by side.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from ..constants import (
    PARALLEL_ANGLE_TOLERANCE_RAD,
    PARALLEL_DISTANCE_TOLERANCE,
    COLINEAR_MERGE_DISTANCE,
    MAX_PARALLEL_GROUP_SIZE,
    MAX_PAIRWISE_COMPARISONS,
    MAX_VALID_DISTANCE,
)
from ..diagnostics import Diagnostics, DiagnosticCode, report
from ..geometry.primitives import (
    angles_equivalent,
    distance,
    is_parallel,
    line_angle,
    project_point_on_line,
)
from ..geometry.segment import Segment

logger = logging.getLogger(__name__)

STAGE = "merge_parallel"

T = TypeVar("T")


def group_parallel_indices(items: Sequence, angle_tolerance: float) -> List[List[int]]:
    """
    Group line-like items by undirected orientation.

    Greedy and order dependent: each ungrouped item seeds a group that
    collects every later ungrouped item whose angle matches the seed.
    Members are compared to the seed only, so two members may be further
    apart than the tolerance.

    Args:
        items: Objects with start and end points
        angle_tolerance: Max angle difference in radians (exclusive)

    Returns:
        List of index groups in seed order
    """
    groups = []
    used = set()

    for i, seed in enumerate(items):
        if i in used:
            continue

        group = [i]
        used.add(i)
        seed_angle = line_angle(seed.start, seed.end)

        for j in range(i + 1, len(items)):
            if j in used:
                continue
            other = items[j]
            if angles_equivalent(seed_angle, line_angle(other.start, other.end), angle_tolerance):
                group.append(j)
                used.add(j)

        groups.append(group)

    return groups


def group_parallel_lines(items: Sequence[T], angle_tolerance: float) -> List[List[T]]:
    """Group line-like items by orientation (see group_parallel_indices)."""
    return [[items[i] for i in group] for group in group_parallel_indices(items, angle_tolerance)]


def distance_between_parallel_lines(seg_a: Segment, seg_b: Segment) -> float:
    """
    Perpendicular distance between two parallel segments.

    Measured from the midpoint of seg_a to the infinite line through seg_b.

    Raises:
        ValueError: If the distance is not a usable finite number
    """
    mid = seg_a.midpoint
    projected = project_point_on_line(mid, seg_b.start, seg_b.end)
    dist = distance(mid, projected)

    if not math.isfinite(dist) or dist < 0 or dist >= MAX_VALID_DISTANCE:
        raise ValueError(f"Invalid distance calculated: {dist}")

    return dist


def _pairwise_distances(group: List[Segment], diagnostics: Optional[Diagnostics]) -> List[float]:
    distances = []
    for i in range(len(group)):
        for j in range(i + 1, len(group)):
            try:
                distances.append(distance_between_parallel_lines(group[i], group[j]))
            except ValueError as e:
                report(
                    diagnostics, STAGE, DiagnosticCode.DISTANCE_ERROR,
                    f"Error calculating distance between parallel lines: {e}",
                    pair=[i, j],
                )
    return distances


def calculate_median_merged_line(group: List[Segment]) -> Segment:
    """
    Fuse a group of parallel segments into one.

    The longest member (first on ties) is the reference axis. The result
    spans every member's endpoints projected onto that axis and is shifted
    perpendicular to it by the median signed offset of the other members'
    midpoints.

    Args:
        group: Non-empty list of parallel segments

    Returns:
        Merged segment carrying the reference member's thickness
    """
    if len(group) == 1:
        return group[0]

    ref_index = 0
    for i, segment in enumerate(group):
        if segment.length > group[ref_index].length:
            ref_index = i
    reference = group[ref_index]

    others = [
        s for i, s in enumerate(group)
        if i != ref_index and (s.start != reference.start or s.end != reference.end)
    ]

    angle = reference.angle
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    ox, oy = reference.start

    # Extent along the reference direction
    points = [reference.start, reference.end]
    for segment in others:
        points.extend([segment.start, segment.end])
    projections = [(p[0] - ox) * cos_a + (p[1] - oy) * sin_a for p in points]
    min_t, max_t = min(projections), max(projections)

    start = (ox + min_t * cos_a, oy + min_t * sin_a)
    end = (ox + max_t * cos_a, oy + max_t * sin_a)

    if not others:
        return reference.with_points(start, end)

    perp_cos = math.cos(angle + math.pi / 2)
    perp_sin = math.sin(angle + math.pi / 2)
    offsets = []
    for segment in others:
        mx, my = segment.midpoint
        offsets.append((mx - start[0]) * perp_cos + (my - start[1]) * perp_sin)

    offset = float(np.median(offsets))
    dx, dy = offset * perp_cos, offset * perp_sin

    return reference.with_points(
        (start[0] + dx, start[1] + dy),
        (end[0] + dx, end[1] + dy),
    )


def merge_parallel(
    segments: Sequence[Segment],
    angle_tolerance: float = PARALLEL_ANGLE_TOLERANCE_RAD,
    distance_tolerance: float = PARALLEL_DISTANCE_TOLERANCE,
    diagnostics: Optional[Diagnostics] = None
) -> List[Segment]:
    """
    Merge groups of parallel lines that lie within distance tolerance.

    Algorithm:
    1. Drop degenerate segments (non-finite or too short)
    2. Group by orientation, seed-anchored
    3. Merge a group only if every pairwise distance is within tolerance
    4. Oversized groups pass through unmerged

    Args:
        segments: Segments to merge
        angle_tolerance: Orientation tolerance in radians
        distance_tolerance: Max perpendicular distance between members
        diagnostics: Optional collector for degrade events

    Returns:
        Merged segments, group by group in seed order
    """
    valid = [s for s in segments if s.is_valid]
    if not valid:
        return []

    merged = []
    merged_groups = 0

    for group in group_parallel_lines(valid, angle_tolerance):
        size = len(group)

        if size == 1:
            merged.append(group[0])
            continue

        if size > MAX_PARALLEL_GROUP_SIZE:
            report(
                diagnostics, STAGE, DiagnosticCode.GROUP_TOO_LARGE,
                f"Parallel group too large ({size} lines), skipping merge",
                size=size,
            )
            merged.extend(group)
            continue

        comparisons = size * (size - 1) // 2
        if comparisons > MAX_PAIRWISE_COMPARISONS:
            report(
                diagnostics, STAGE, DiagnosticCode.COMPARISON_LIMIT,
                f"Parallel group needs {comparisons} comparisons, skipping merge",
                size=size,
                comparisons=comparisons,
            )
            merged.extend(group)
            continue

        distances = _pairwise_distances(group, diagnostics)
        max_distance = max(distances) if distances else 0.0

        if max_distance <= distance_tolerance:
            merged.append(calculate_median_merged_line(group))
            merged_groups += 1
        else:
            merged.extend(group)

    logger.info(
        f"Parallel merger: {merged_groups} groups merged, "
        f"{len(segments)} -> {len(merged)} segments"
    )

    return merged


def detect_parallel(
    segments: Sequence[Segment],
    angle_tolerance: float = PARALLEL_ANGLE_TOLERANCE_RAD
) -> List[Tuple[int, int]]:
    """
    Find all pairs of parallel segments without merging.

    Returns:
        List of (i, j) index pairs with i < j
    """
    if len(segments) < 2:
        return []

    pairs = []
    for i in range(len(segments)):
        for j in range(i + 1, len(segments)):
            if is_parallel(
                segments[i].start, segments[i].end,
                segments[j].start, segments[j].end,
                angle_tolerance,
            ):
                pairs.append((i, j))
    return pairs


def merge_parallel_simple(
    segments: Sequence[Segment],
    distance: float = COLINEAR_MERGE_DISTANCE
) -> List[Segment]:
    """Merge parallel lines within distance using the default angle tolerance."""
    return merge_parallel(
        segments,
        angle_tolerance=PARALLEL_ANGLE_TOLERANCE_RAD,
        distance_tolerance=distance,
    )
