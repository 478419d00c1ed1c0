"""
Loop Detection Module

Finds closed loops (rooms) in a set of segments by walking an adjacency
graph of grid-collapsed endpoints.

Two traversal policies share one entry point:
- ALL_LOOPS: greedy walk from every unvisited node, keeping every closed
  loop above a minimum area (multi-room detection)
- LARGEST_LOOP_ONLY: depth-first search without immediate backtracking,
  then selection of the largest loop (building footprint)
"""

import logging
from collections import OrderedDict
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from ..constants import (
    DEFAULT_MIN_ROOM_AREA,
    DEFAULT_ROOM_DETECTION_GAP,
    DEFAULT_MIN_POLYGON_AREA,
    ENDPOINT_GRID_TOLERANCE,
    MIN_LOOP_AREA,
    MIN_LOOP_POINTS,
)
from ..geometry.primitives import (
    Point,
    distance,
    is_finite_point,
    polygon_area,
    round_half_up,
)
from ..geometry.room import Room
from ..geometry.segment import Segment

logger = logging.getLogger(__name__)

GridKey = Tuple[int, int]


class LoopPolicy(Enum):
    """Loop traversal policy."""
    ALL_LOOPS = "all_loops"
    LARGEST_LOOP_ONLY = "largest_loop_only"


def grid_key(point: Point, tolerance: float) -> GridKey:
    """Integer grid cell of a point for a cell size of tolerance."""
    return (round_half_up(point[0] / tolerance), round_half_up(point[1] / tolerance))


# =============================================================================
# ALL LOOPS
# =============================================================================

class EndpointGraph:
    """
    Undirected graph of segment endpoints collapsed to grid cells.

    A node's representative point is the first endpoint seen in its cell.
    Each adjacency entry records the neighbor node and the segment joining
    them, in segment order.
    """

    def __init__(self, segments: Sequence[Segment], tolerance: float):
        self.points: "OrderedDict[GridKey, Point]" = OrderedDict()
        self.adjacency: Dict[GridKey, List[Tuple[GridKey, int]]] = {}

        for index, segment in enumerate(segments):
            if not (is_finite_point(segment.start) and is_finite_point(segment.end)):
                continue
            start = self._node(segment.start, tolerance)
            end = self._node(segment.end, tolerance)
            self.adjacency[start].append((end, index))
            self.adjacency[end].append((start, index))

    def _node(self, point: Point, tolerance: float) -> GridKey:
        key = grid_key(point, tolerance)
        if key not in self.points:
            self.points[key] = point
            self.adjacency[key] = []
        return key

    @property
    def nodes(self) -> List[GridKey]:
        return list(self.points.keys())

    def __len__(self) -> int:
        return len(self.points)


def _walk_loop(
    graph: EndpointGraph,
    start: GridKey,
    used_segments: Set[int],
    max_gap: float
) -> Optional[Tuple[List[GridKey], Set[int]]]:
    """
    Greedy walk from start until it returns near its origin or dead-ends.

    Returns:
        (node path, segments used) for a closed loop, or None
    """
    start_point = graph.points[start]
    path = [start]
    on_path = {start}
    walk_segments: Set[int] = set()
    previous: Optional[GridKey] = None
    current = start

    while True:
        step = None
        for neighbor, segment_index in graph.adjacency[current]:
            if neighbor == previous:
                continue
            if segment_index in used_segments or segment_index in walk_segments:
                continue

            if len(path) >= MIN_LOOP_POINTS and distance(graph.points[neighbor], start_point) <= max_gap:
                walk_segments.add(segment_index)
                return path, walk_segments

            if neighbor not in on_path:
                step = (neighbor, segment_index)
                break

        if step is None:
            return None

        neighbor, segment_index = step
        walk_segments.add(segment_index)
        path.append(neighbor)
        on_path.add(neighbor)
        previous, current = current, neighbor


def detect_rooms(
    segments: Sequence[Segment],
    min_area: float = DEFAULT_MIN_ROOM_AREA,
    max_gap: float = DEFAULT_ROOM_DETECTION_GAP,
    grid_tolerance: float = ENDPOINT_GRID_TOLERANCE
) -> List[Room]:
    """
    Detect closed rooms formed by connected segments.

    Args:
        segments: Cleaned segments
        min_area: Minimum absolute area for a room
        max_gap: Max distance from the walk's last node to its start to
            close a loop
        grid_tolerance: Grid cell size for collapsing nearby endpoints

    Returns:
        Rooms in discovery order
    """
    if len(segments) < 3:
        return []

    graph = EndpointGraph(segments, grid_tolerance)
    visited_nodes: Set[GridKey] = set()
    used_segments: Set[int] = set()
    rooms = []
    rejected = 0

    for start in graph.nodes:
        if start in visited_nodes:
            continue

        found = _walk_loop(graph, start, used_segments, max_gap)
        visited_nodes.add(start)
        if found is None:
            continue

        path, loop_segments = found
        visited_nodes.update(path)
        used_segments.update(loop_segments)

        room = Room.from_points([graph.points[key] for key in path])
        if room.area >= min_area:
            rooms.append(room)
        else:
            rejected += 1

    logger.info(f"Room detection: {len(rooms)} rooms found ({rejected} below {min_area} area)")
    return rooms


# =============================================================================
# LARGEST LOOP ONLY
# =============================================================================

def _snapped_point(key: GridKey, tolerance: float) -> Point:
    return (key[0] * tolerance, key[1] * tolerance)


def _build_snapped_adjacency(
    walls: Sequence[Segment],
    tolerance: float
) -> "OrderedDict[GridKey, List[GridKey]]":
    adjacency: "OrderedDict[GridKey, List[GridKey]]" = OrderedDict()
    for wall in walls:
        if not (is_finite_point(wall.start) and is_finite_point(wall.end)):
            continue
        start = grid_key(wall.start, tolerance)
        end = grid_key(wall.end, tolerance)
        adjacency.setdefault(start, []).append(end)
        adjacency.setdefault(end, []).append(start)
    return adjacency


def _find_cycle(
    adjacency: Dict[GridKey, List[GridKey]],
    start: GridKey,
    visited: Set[GridKey],
    tolerance: float
) -> Optional[List[Point]]:
    """
    Depth-first search for the first cycle back to start.

    Uses an explicit stack but visits nodes in the same order as the
    recursive search would. The visited set is shared across starts and
    the start node itself is never marked.
    """

    def enter(key: GridKey, path: List[Point]):
        point = _snapped_point(key, tolerance)
        if len(path) >= MIN_LOOP_POINTS and distance(point, path[0]) <= tolerance:
            return path, False
        if path:
            if key in visited and len(path) > 1:
                return None, False
            visited.add(key)
        stack.append((point, path, iter(adjacency.get(key, ()))))
        return None, True

    stack: List[Tuple[Point, List[Point], Iterator[GridKey]]] = []
    enter(start, [])

    while stack:
        point, path, neighbors = stack[-1]
        descended = False

        for neighbor in neighbors:
            if path and distance(_snapped_point(neighbor, tolerance), path[-1]) <= tolerance:
                continue
            cycle, pushed = enter(neighbor, path + [point])
            if cycle is not None:
                return cycle
            if pushed:
                descended = True
                break

        if not descended:
            stack.pop()

    return None


def find_closed_loops(
    walls: Sequence[Segment],
    tolerance: float = ENDPOINT_GRID_TOLERANCE,
    min_area: float = MIN_LOOP_AREA
) -> List[Room]:
    """
    Find closed loops among wall segments.

    Endpoints are snapped to multiples of tolerance. From each node not yet
    visited, the first cycle found by depth-first search is kept if its
    area reaches min_area.

    Args:
        walls: Wall segments
        tolerance: Endpoint snapping grid size
        min_area: Minimum loop area

    Returns:
        Closed loops in discovery order
    """
    if len(walls) < 3:
        return []

    adjacency = _build_snapped_adjacency(walls, tolerance)
    visited: Set[GridKey] = set()
    loops = []

    for start in list(adjacency.keys()):
        if start in visited:
            continue

        cycle = _find_cycle(adjacency, start, visited, tolerance)
        if cycle is None or len(cycle) < MIN_LOOP_POINTS:
            continue

        if polygon_area(cycle) >= min_area:
            loops.append(Room.from_points(cycle))

    logger.debug(f"Closed loop search: {len(loops)} loops from {len(adjacency)} nodes")
    return loops


def select_largest_loop(loops: Sequence[Room]) -> Optional[Room]:
    """Largest loop by absolute area (first on ties), or None."""
    largest = None
    largest_area = 0.0
    for loop in loops:
        if loop.area > largest_area:
            largest_area = loop.area
            largest = loop
    return largest


# =============================================================================
# SHARED ENTRY POINT
# =============================================================================

def find_loops(
    segments: Sequence[Segment],
    policy: LoopPolicy = LoopPolicy.ALL_LOOPS,
    min_area: Optional[float] = None,
    max_gap: float = DEFAULT_ROOM_DETECTION_GAP,
    tolerance: float = ENDPOINT_GRID_TOLERANCE
) -> List[Room]:
    """
    Find closed loops with the given policy.

    Args:
        segments: Segments to analyze
        policy: ALL_LOOPS or LARGEST_LOOP_ONLY
        min_area: Minimum loop area (policy default if None)
        max_gap: Loop closing distance (ALL_LOOPS only)
        tolerance: Endpoint grid size

    Returns:
        All qualifying loops, or a list holding only the largest one
    """
    if policy is LoopPolicy.ALL_LOOPS:
        area = DEFAULT_MIN_ROOM_AREA if min_area is None else min_area
        return detect_rooms(segments, min_area=area, max_gap=max_gap, grid_tolerance=tolerance)

    area = MIN_LOOP_AREA if min_area is None else min_area
    largest = select_largest_loop(find_closed_loops(segments, tolerance=tolerance, min_area=area))
    return [largest] if largest is not None else []


def remove_small_polygons(
    polygons: Sequence[Room],
    min_area: float = DEFAULT_MIN_POLYGON_AREA
) -> List[Room]:
    """Drop polygons with fewer than 3 points or area below min_area."""
    kept = []
    for polygon in polygons:
        if len(polygon.ring) < MIN_LOOP_POINTS:
            continue
        if polygon.area >= min_area:
            kept.append(polygon)
    return kept
