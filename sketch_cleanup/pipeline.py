"""
Pipeline Orchestration Module

Runs the cleanup stages in order:
Snap -> Merge Parallel -> Merge Colinear -> Bridge Gaps -> Detect Rooms -> area filter.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .config import CleanupOptions, coerce_options
from .diagnostics import DiagnosticCode, Diagnostics, report
from .geometry.primitives import distance
from .geometry.room import Room
from .geometry.segment import Segment, Polyline, parse_segments
from .topology.snapping import snap_lines
from .topology.parallel_merger import merge_parallel
from .topology.colinear_merger import merge_colinear_segments
from .topology.gap_bridger import bridge_gaps
from .topology.loops import detect_rooms, remove_small_polygons


logger = logging.getLogger(__name__)

OptionsLike = Union[CleanupOptions, Mapping[str, Any], None]


@dataclass
class Segments:
    """Tracer output given as individual segments."""
    items: Sequence[Any]


@dataclass
class Polylines:
    """Tracer output given as polylines."""
    items: Sequence[Any]


@dataclass
class CleanupResult:
    """Result from a cleanup run."""
    rooms: List[Room] = field(default_factory=list)
    lines: List[Segment] = field(default_factory=list)
    polygons: List[Room] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {
            "rooms": [room.to_points() for room in self.rooms],
            "lines": [line.to_dict() for line in self.lines],
            "polygons": [polygon.to_points() for polygon in self.polygons],
            "diagnostics": self.diagnostics.to_list(),
        }


def cleanup_geometry(
    lines: Any,
    options: OptionsLike = None,
    diagnostics: Optional[Diagnostics] = None
) -> CleanupResult:
    """
    Clean traced segments and detect rooms.

    Args:
        lines: List of segments ({start, end, thickness?} dicts or Segment)
        options: CleanupOptions or a flat options mapping
        diagnostics: Optional collector; a new one is created if None

    Returns:
        CleanupResult; polygons currently equal the filtered rooms
    """
    opts = coerce_options(options)
    if diagnostics is None:
        diagnostics = Diagnostics()

    if not isinstance(lines, (list, tuple)) or not lines:
        return CleanupResult(diagnostics=diagnostics)

    start_time = time.time()
    segments = parse_segments(lines)
    input_count = len(segments)

    dropped = len(lines) - input_count
    if dropped:
        report(
            diagnostics, "parse", DiagnosticCode.INVALID_INPUT,
            f"Dropped {dropped} malformed segments",
            dropped=dropped,
        )

    # Step 1: Snap to orthogonal (and optionally 45 degrees)
    cleaned = snap_lines(
        segments,
        tolerance_deg=opts.snap_tolerance_deg,
        use_45_deg=opts.use_45_deg,
        grid_size=opts.grid_size,
    )

    # Step 2: Merge parallel lines
    if len(cleaned) > 1:
        cleaned = merge_parallel(
            cleaned,
            angle_tolerance=opts.parallel_angle_tolerance,
            distance_tolerance=opts.merge_distance,
            diagnostics=diagnostics,
        )

    # Step 3: Merge colinear segments
    if len(cleaned) > 1:
        cleaned = merge_colinear_segments(
            cleaned,
            distance=opts.merge_distance,
            angle_tolerance=opts.colinear_angle_tolerance,
        )

    # Step 4: Bridge small gaps
    if len(cleaned) > 1:
        cleaned = bridge_gaps(cleaned, max_gap=opts.max_gap)

    # Step 5: Detect rooms
    rooms = detect_rooms(
        cleaned,
        min_area=opts.min_room_area,
        max_gap=opts.room_detection_gap,
        grid_tolerance=opts.room_grid_tolerance,
    )

    # Step 6: Drop small polygons
    polygons = remove_small_polygons(rooms, min_area=opts.min_area)

    logger.info(
        f"Cleanup: {input_count} -> {len(cleaned)} lines, {len(polygons)} rooms "
        f"({time.time() - start_time:.3f}s)"
    )
    if len(diagnostics):
        logger.info(f"  {len(diagnostics)} degrade events recorded")

    return CleanupResult(
        rooms=list(polygons),
        lines=cleaned,
        polygons=list(polygons),
        diagnostics=diagnostics,
    )


def polylines_to_segments(polylines: Sequence[Any], closed_tolerance: float) -> List[Segment]:
    """
    Split polylines into consecutive segments.

    Open polylines of more than two points whose ends are not within
    closed_tolerance get a closing segment from last point to first.

    Args:
        polylines: Point lists, {"points": [...]} dicts or Polyline objects
        closed_tolerance: Distance below which ends count as joined

    Returns:
        Segments in polyline order
    """
    segments = []
    for item in polylines:
        polyline = Polyline.from_obj(item)
        if polyline is None:
            continue

        segments.extend(polyline.to_segments())

        if len(polyline.points) > 2 and not polyline.closes_within(closed_tolerance):
            segments.append(Segment(start=polyline.points[-1], end=polyline.points[0]))

    return segments


def segments_to_polylines(segments: Sequence[Any], tolerance: float) -> List[List[List[float]]]:
    """
    Chain segments into polylines, joining each segment to the previous
    one when its start lies within tolerance of the previous end.

    Malformed segments are dropped. A square drawn as four head-to-tail
    segments becomes one closed five-point polyline.
    """
    polylines: List[List[List[float]]] = []
    chain: List[List[float]] = []

    for segment in parse_segments(segments):
        if chain and distance(chain[-1], segment.start) <= tolerance:
            chain.append(list(segment.end))
            continue
        if chain:
            polylines.append(chain)
        chain = [list(segment.start), list(segment.end)]

    if chain:
        polylines.append(chain)
    return polylines


def cleanup_from_polylines(
    polylines: Any,
    options: OptionsLike = None,
    diagnostics: Optional[Diagnostics] = None
) -> CleanupResult:
    """
    Clean traced polylines and detect rooms.

    Args:
        polylines: List of polylines
        options: CleanupOptions or a flat options mapping

    Returns:
        CleanupResult
    """
    opts = coerce_options(options)
    if not isinstance(polylines, (list, tuple)) or not polylines:
        return CleanupResult(diagnostics=diagnostics if diagnostics is not None else Diagnostics())

    segments = polylines_to_segments(polylines, opts.closed_tolerance)
    logger.debug(f"Polylines: {len(polylines)} polylines -> {len(segments)} segments")

    return cleanup_geometry(segments, opts, diagnostics)


def cleanup(
    geometry_input: Union[Segments, Polylines],
    options: OptionsLike = None,
    diagnostics: Optional[Diagnostics] = None
) -> CleanupResult:
    """
    Clean tracer output given as Segments or Polylines.

    Raises:
        TypeError: If geometry_input is neither Segments nor Polylines
    """
    if isinstance(geometry_input, Segments):
        return cleanup_geometry(geometry_input.items, options, diagnostics)
    if isinstance(geometry_input, Polylines):
        return cleanup_from_polylines(geometry_input.items, options, diagnostics)
    raise TypeError(
        f"Expected Segments or Polylines, got {type(geometry_input).__name__}"
    )
