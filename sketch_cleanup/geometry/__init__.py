# Geometry primitives and data model

from .primitives import (
    Point,
    round_half_up,
    distance,
    line_length,
    line_angle,
    normalize_angle,
    normalize_angle_diff,
    angles_equivalent,
    is_parallel,
    midpoint,
    project_point,
    project_point_on_line,
    perpendicular_distance,
    intersect_segments,
    intersect_lines,
    signed_area,
    polygon_area,
    path_length,
    simplify_polyline,
)

from .segment import (
    Segment,
    Polyline,
    parse_point,
    parse_segments,
    parse_polylines,
)

from .room import Room

__all__ = [
    # Primitives
    "Point",
    "round_half_up",
    "distance",
    "line_length",
    "line_angle",
    "normalize_angle",
    "normalize_angle_diff",
    "angles_equivalent",
    "is_parallel",
    "midpoint",
    "project_point",
    "project_point_on_line",
    "perpendicular_distance",
    "intersect_segments",
    "intersect_lines",
    "signed_area",
    "polygon_area",
    "path_length",
    "simplify_polyline",
    # Segment
    "Segment",
    "Polyline",
    "parse_point",
    "parse_segments",
    "parse_polylines",
    # Room
    "Room",
]
