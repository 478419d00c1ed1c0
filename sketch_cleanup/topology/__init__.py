# Topology cleanup stages

from .snapping import (
    snap_lines,
    snap_orthogonal,
    snap_to_orthogonal,
    snap_to_grid,
    snap_line_to_orthogonal,
    bucket_angles,
    dominant_orthogonal_direction,
)

from .parallel_merger import (
    merge_parallel,
    merge_parallel_simple,
    detect_parallel,
    group_parallel_lines,
)

from .colinear_merger import merge_colinear_segments

from .gap_bridger import (
    EndpointGrid,
    bridge_gaps,
)

from .loops import (
    LoopPolicy,
    find_loops,
    detect_rooms,
    find_closed_loops,
    select_largest_loop,
    remove_small_polygons,
)

from .walls import (
    Wall,
    WallType,
    Opening,
    OpeningType,
    WallGeometry,
    detect_walls,
    find_openings,
    classify_walls,
    extract_wall_geometry,
    extract_walls,
)

from .validator import (
    ValidationResult,
    validate_input,
    log_input_geometry,
)

__all__ = [
    # Snapping
    "snap_lines",
    "snap_orthogonal",
    "snap_to_orthogonal",
    "snap_to_grid",
    "snap_line_to_orthogonal",
    "bucket_angles",
    "dominant_orthogonal_direction",
    # Parallel Merger
    "merge_parallel",
    "merge_parallel_simple",
    "detect_parallel",
    "group_parallel_lines",
    # Colinear Merger
    "merge_colinear_segments",
    # Gap Bridger
    "EndpointGrid",
    "bridge_gaps",
    # Loops
    "LoopPolicy",
    "find_loops",
    "detect_rooms",
    "find_closed_loops",
    "select_largest_loop",
    "remove_small_polygons",
    # Walls
    "Wall",
    "WallType",
    "Opening",
    "OpeningType",
    "WallGeometry",
    "detect_walls",
    "find_openings",
    "classify_walls",
    "extract_wall_geometry",
    "extract_walls",
    # Validator
    "ValidationResult",
    "validate_input",
    "log_input_geometry",
]
