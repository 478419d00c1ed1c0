"""
Result Contract Module

Builds the {walls, rooms, openings, meta} topology document consumed by the
renderer and checks documents from any producer against the same rules.
"""

import logging
import math
from numbers import Real
from typing import Any, Dict, List, Optional, Sequence, Tuple

from shapely.geometry import MultiPoint

from .config import CleanupOptions
from .constants import (
    DEFAULT_RESULT_SCALE,
    MIN_CONTRACT_EPSILON,
    CONTRACT_EPSILON_RATIO,
)
from .geometry.primitives import distance, polygon_area
from .pipeline import CleanupResult
from .topology.walls import classify_walls, extract_wall_geometry

logger = logging.getLogger(__name__)

Bounds = Dict[str, float]


def compute_bounds(points: Sequence[Sequence[float]]) -> Bounds:
    """
    Axis-aligned bounds of a point set.

    Returns:
        {"minX", "maxX", "minY", "maxY"}; all zero for no points
    """
    coords = [(p[0], p[1]) for p in points]
    if not coords:
        return {"minX": 0.0, "maxX": 0.0, "minY": 0.0, "maxY": 0.0}

    min_x, min_y, max_x, max_y = MultiPoint(coords).bounds
    return {"minX": min_x, "maxX": max_x, "minY": min_y, "maxY": max_y}


def build_topology_result(
    result: CleanupResult,
    scale: float = DEFAULT_RESULT_SCALE,
    options: Optional[CleanupOptions] = None
) -> Dict[str, Any]:
    """
    Convert a cleanup result into the topology contract.

    Walls are extracted from the cleaned lines and classified by thickness;
    openings reference the first of the two walls they separate.

    Args:
        result: Output of the cleanup pipeline
        scale: Meters per tracer unit, written to meta
        options: Wall extraction options (defaults if None)

    Returns:
        JSON-serializable topology document
    """
    opts = options or CleanupOptions()

    geometry = extract_wall_geometry(
        result.lines,
        min_wall_length=opts.min_wall_length,
        wall_thickness=opts.wall_thickness,
        opening_threshold=opts.opening_threshold,
    )
    walls = classify_walls(
        geometry.walls,
        exterior_thickness=opts.exterior_thickness,
        interior_thickness=opts.interior_thickness,
    )

    wall_ids = [f"W{i + 1}" for i in range(len(walls))]

    wall_docs = [
        {
            "id": wall_id,
            "start": [wall.start[0], wall.start[1]],
            "end": [wall.end[0], wall.end[1]],
            "thickness": wall.thickness,
            "type": wall.type.value,
        }
        for wall_id, wall in zip(wall_ids, walls)
    ]

    room_docs = [
        {
            "id": f"R{i + 1}",
            "polygon": room.to_points(),
            "area": room.area,
        }
        for i, room in enumerate(result.rooms)
    ]

    opening_docs = [
        {
            "id": f"O{i + 1}",
            "wallId": wall_ids[opening.wall_indices[0]],
            "start": [opening.start[0], opening.start[1]],
            "end": [opening.end[0], opening.end[1]],
            "width": opening.width,
            "type": opening.type.value,
        }
        for i, opening in enumerate(geometry.openings)
    ]

    points = []
    for wall in walls:
        points.extend([wall.start, wall.end])
    for room in result.rooms:
        points.extend(room.ring)

    logger.debug(
        f"Topology result: {len(wall_docs)} walls, {len(room_docs)} rooms, "
        f"{len(opening_docs)} openings"
    )

    return {
        "walls": wall_docs,
        "rooms": room_docs,
        "openings": opening_docs,
        "meta": {
            "scale": scale,
            "bounds": compute_bounds(points),
        },
    }


# =============================================================================
# VALIDATION
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_point(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(_is_number(v) and math.isfinite(v) for v in value)
    )


def _point_in_bounds(point: Any, bounds: Bounds) -> bool:
    if not _is_point(point):
        return False
    x, y = point
    return bounds["minX"] <= x <= bounds["maxX"] and bounds["minY"] <= y <= bounds["maxY"]


def _document_bounds(document: Dict[str, Any]) -> Bounds:
    meta = document.get("meta")
    if isinstance(meta, dict) and isinstance(meta.get("bounds"), dict):
        bounds = meta["bounds"]
        if all(_is_number(bounds.get(k)) for k in ("minX", "maxX", "minY", "maxY")):
            return bounds

    points = []
    for wall in document.get("walls") or []:
        if isinstance(wall, dict):
            points.extend(p for p in (wall.get("start"), wall.get("end")) if _is_point(p))
    for room in document.get("rooms") or []:
        if isinstance(room, dict) and isinstance(room.get("polygon"), list):
            points.extend(p for p in room["polygon"] if _is_point(p))
    return compute_bounds(points)


def _check_walls(walls: Any, bounds: Bounds, errors: List[Dict[str, str]]) -> None:
    if not isinstance(walls, list):
        errors.append({"path": "walls", "message": "Walls must be an array"})
        return

    seen = set()
    for index, wall in enumerate(walls):
        path = f"walls[{index}]"
        if not isinstance(wall, dict):
            errors.append({"path": path, "message": "Wall must be an object"})
            continue

        wall_id = wall.get("id")
        if not wall_id or not isinstance(wall_id, str):
            errors.append({"path": f"{path}.id", "message": "Wall must have a string id"})
        elif wall_id in seen:
            errors.append({"path": f"{path}.id", "message": f"Duplicate wall id: {wall_id}"})
        else:
            seen.add(wall_id)

        for key in ("start", "end"):
            if not _point_in_bounds(wall.get(key), bounds):
                errors.append({
                    "path": f"{path}.{key}",
                    "message": f"{key.capitalize()} point {wall.get(key)} is not numeric or out of bounds",
                })


def _check_rooms(rooms: Any, epsilon: float, errors: List[Dict[str, str]]) -> None:
    if not isinstance(rooms, list):
        errors.append({"path": "rooms", "message": "Rooms must be an array"})
        return

    for index, room in enumerate(rooms):
        path = f"rooms[{index}]"
        if not isinstance(room, dict):
            errors.append({"path": path, "message": "Room must be an object"})
            continue

        polygon = room.get("polygon")
        if not isinstance(polygon, list) or len(polygon) < 3 or not all(_is_point(p) for p in polygon):
            errors.append({
                "path": f"{path}.polygon",
                "message": "Polygon must be an array with at least 3 points",
            })
            continue

        if distance(polygon[0], polygon[-1]) > epsilon:
            errors.append({
                "path": f"{path}.polygon",
                "message": "Polygon is not closed (endpoints are too far apart)",
            })

        area = polygon_area(polygon)
        if area <= 0:
            errors.append({
                "path": f"{path}.area",
                "message": f"Polygon has zero or negative area: {area}",
            })


def _check_openings(openings: Any, walls: Any, errors: List[Dict[str, str]]) -> None:
    if not isinstance(openings, list):
        errors.append({"path": "openings", "message": "Openings must be an array"})
        return

    wall_ids = set()
    if isinstance(walls, list):
        wall_ids = {w.get("id") for w in walls if isinstance(w, dict) and w.get("id")}

    for index, opening in enumerate(openings):
        path = f"openings[{index}]"
        if not isinstance(opening, dict):
            errors.append({"path": path, "message": "Opening must be an object"})
            continue

        wall_id = opening.get("wallId")
        if not wall_id or not isinstance(wall_id, str):
            errors.append({"path": f"{path}.wallId", "message": "Opening must have a string wallId"})
        elif wall_id not in wall_ids:
            errors.append({
                "path": f"{path}.wallId",
                "message": f"Opening references non-existent wall: {wall_id}",
            })


def validate_topology_result(document: Any) -> Tuple[bool, List[Dict[str, str]]]:
    """
    Check a topology document against the result contract.

    Rules: meta.scale is a positive number; wall ids are unique strings;
    wall points are numeric and inside the bounds; room polygons have at
    least 3 points, are closed within 1% of the bounds extent and have
    positive area; openings reference existing walls.

    Args:
        document: Parsed topology document

    Returns:
        (valid, errors) with errors as {"path", "message"} dicts
    """
    if not isinstance(document, dict):
        return False, [{"path": "root", "message": "Geometry must be an object"}]

    errors: List[Dict[str, str]] = []

    meta = document.get("meta")
    if not isinstance(meta, dict):
        errors.append({"path": "meta", "message": "Missing meta object"})
    elif not _is_number(meta.get("scale")) or meta["scale"] <= 0:
        errors.append({"path": "meta.scale", "message": "Scale must be a positive number"})

    bounds = _document_bounds(document)
    epsilon = max(
        (bounds["maxX"] - bounds["minX"]) * CONTRACT_EPSILON_RATIO,
        (bounds["maxY"] - bounds["minY"]) * CONTRACT_EPSILON_RATIO,
        MIN_CONTRACT_EPSILON,
    )

    _check_walls(document.get("walls"), bounds, errors)
    _check_rooms(document.get("rooms"), epsilon, errors)
    _check_openings(document.get("openings"), document.get("walls"), errors)

    if errors:
        logger.debug(f"Topology result has {len(errors)} contract errors")

    return not errors, errors
