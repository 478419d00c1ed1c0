"""
Sketch Cleanup - Master Constants Reference

Default tolerances and thresholds for every cleanup stage. Coordinates are in
tracer units (pixels of the traced sketch unless a caller rescales them).
"""

import math

# =============================================================================
# SEGMENT VALIDITY CONSTANTS
# =============================================================================

# Segments shorter than this are degenerate and dropped by the mergers
MIN_SEGMENT_LENGTH = 0.001

# Distance below which two points count as the same endpoint
POINT_MATCH_EPSILON = 0.1

# =============================================================================
# ORTHOGONAL SNAPPING CONSTANTS
# =============================================================================

# Max deviation from a 90 (or 45) degree multiple that still snaps (degrees)
DEFAULT_SNAP_TOLERANCE_DEG = 5

# Radian tolerance used by the grid-snapping variant (~5.7 degrees)
DEFAULT_SNAP_TOLERANCE_RAD = 0.1

# Grid size for endpoint pre-snapping in snap_to_orthogonal
DEFAULT_SNAP_GRID_SIZE = 10

# 45 degree targets tried in order by the diagonal pass
DIAGONAL_TARGET_ANGLES = (
    math.pi / 4,
    3 * math.pi / 4,
    5 * math.pi / 4,
    7 * math.pi / 4,
)

# =============================================================================
# PARALLEL MERGE CONSTANTS
# =============================================================================

# Max undirected angle difference for parallel grouping (radians, ~2.9 deg)
PARALLEL_ANGLE_TOLERANCE_RAD = 0.05

# Max perpendicular distance between group members to merge
PARALLEL_DISTANCE_TOLERANCE = 5.0

# Groups larger than this are passed through unmerged
MAX_PARALLEL_GROUP_SIZE = 1000

# Groups needing more pairwise comparisons than this are passed through
MAX_PAIRWISE_COMPARISONS = 10000

# Distances at or above this are treated as calculation failures
MAX_VALID_DISTANCE = 1e10

# =============================================================================
# COLINEAR MERGE CONSTANTS
# =============================================================================

# Max gap between consecutive colinear segments to fuse
COLINEAR_MERGE_DISTANCE = 10

# Max undirected angle difference for colinear grouping (radians)
COLINEAR_ANGLE_TOLERANCE_RAD = 0.01

# =============================================================================
# GAP BRIDGING CONSTANTS
# =============================================================================

# Max endpoint gap bridged between aligned segments
DEFAULT_MAX_GAP = 5

# Max angle difference for two segments to be bridged (radians)
BRIDGE_ANGLE_TOLERANCE_RAD = 0.1

# =============================================================================
# ROOM / LOOP DETECTION CONSTANTS
# =============================================================================

# Minimum absolute shoelace area for a detected room
DEFAULT_MIN_ROOM_AREA = 100

# Max distance between walk end and start to close a loop
DEFAULT_ROOM_DETECTION_GAP = 5

# Grid cell size used to collapse near-coincident endpoints
ENDPOINT_GRID_TOLERANCE = 5.0

# Minimum area for the largest-loop (footprint) finder
MIN_LOOP_AREA = 1000.0

# Minimum loop vertex count (triangle)
MIN_LOOP_POINTS = 3

# Final polygon filter applied by the pipeline
DEFAULT_MIN_POLYGON_AREA = 50

# Tolerance for treating a polyline as already closed
DEFAULT_CLOSED_TOLERANCE = 5

# =============================================================================
# WALL / OPENING CONSTANTS
# =============================================================================

# Minimum segment length to count as a wall
MIN_WALL_LENGTH = 10

# Thickness assigned to walls without an explicit one
DEFAULT_WALL_THICKNESS = 2

# Max gap between aligned walls to report an opening
DEFAULT_OPENING_THRESHOLD = 10

# Orientation tolerance for grouping and aligning walls (radians)
WALL_ANGLE_TOLERANCE_RAD = 0.1

# Typical exterior / interior wall thickness used by the classifier
EXTERIOR_WALL_THICKNESS = 6
INTERIOR_WALL_THICKNESS = 2

# =============================================================================
# INPUT VALIDATION CONSTANTS
# =============================================================================

# Minimum wall length accepted by the input validator
VALIDATION_MIN_WALL_LENGTH = 20

# Minimum chord / path-length ratio for a polyline to count as one wall
VALIDATION_MIN_STRAIGHTNESS = 0.8

# Minimum wall count for input to be accepted
VALIDATION_MIN_WALLS = 3

# Minimum closed polylines for input to be accepted
VALIDATION_MIN_CLOSED_LOOPS = 1

# First/last point distance for a polyline to count as closed
VALIDATION_CLOSURE_TOLERANCE = 5.0

# Number of polylines described in detail by log_input_geometry
VALIDATION_LOG_SAMPLE_COUNT = 5

# =============================================================================
# RESULT CONTRACT CONSTANTS
# =============================================================================

# Default scale (meters per unit) written to result meta
DEFAULT_RESULT_SCALE = 0.01

# Minimum closure epsilon for room polygons in the result contract
MIN_CONTRACT_EPSILON = 0.01

# Closure epsilon as a ratio of the bounds extent
CONTRACT_EPSILON_RATIO = 0.01
