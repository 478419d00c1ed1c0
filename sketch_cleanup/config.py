"""
Configuration Module

Per-call cleanup options and loading them from a YAML settings file.
"""

import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .constants import (
    DEFAULT_MIN_POLYGON_AREA,
    DEFAULT_SNAP_TOLERANCE_DEG,
    COLINEAR_MERGE_DISTANCE,
    PARALLEL_ANGLE_TOLERANCE_RAD,
    COLINEAR_ANGLE_TOLERANCE_RAD,
    DEFAULT_MAX_GAP,
    DEFAULT_MIN_ROOM_AREA,
    DEFAULT_ROOM_DETECTION_GAP,
    ENDPOINT_GRID_TOLERANCE,
    DEFAULT_CLOSED_TOLERANCE,
    MIN_WALL_LENGTH,
    DEFAULT_WALL_THICKNESS,
    DEFAULT_OPENING_THRESHOLD,
    EXTERIOR_WALL_THICKNESS,
    INTERIOR_WALL_THICKNESS,
)

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a settings file cannot be used."""


@dataclass
class CleanupOptions:
    """Options for a single cleanup call."""
    # Final polygon filter
    min_area: float = DEFAULT_MIN_POLYGON_AREA

    # Snapping
    snap_tolerance_deg: float = DEFAULT_SNAP_TOLERANCE_DEG
    use_45_deg: bool = False
    grid_size: float = 0

    # Parallel / colinear merging
    merge_distance: float = COLINEAR_MERGE_DISTANCE
    parallel_angle_tolerance: float = PARALLEL_ANGLE_TOLERANCE_RAD
    colinear_angle_tolerance: float = COLINEAR_ANGLE_TOLERANCE_RAD

    # Gap bridging
    max_gap: float = DEFAULT_MAX_GAP

    # Room detection
    min_room_area: float = DEFAULT_MIN_ROOM_AREA
    room_detection_gap: float = DEFAULT_ROOM_DETECTION_GAP
    room_grid_tolerance: float = ENDPOINT_GRID_TOLERANCE

    # Polyline input
    closed_tolerance: float = DEFAULT_CLOSED_TOLERANCE

    # Wall / opening extraction for the result contract
    min_wall_length: float = MIN_WALL_LENGTH
    wall_thickness: float = DEFAULT_WALL_THICKNESS
    opening_threshold: float = DEFAULT_OPENING_THRESHOLD
    exterior_thickness: float = EXTERIOR_WALL_THICKNESS
    interior_thickness: float = INTERIOR_WALL_THICKNESS

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in BOOLEAN_OPTIONS:
                if not isinstance(value, bool):
                    raise ConfigError(f"Option {f.name} must be true or false, got {value!r}")
                continue
            setattr(self, f.name, _number(f.name, value))

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CleanupOptions":
        """
        Build options from a flat mapping.

        Keys may be snake_case or the camelCase names used by the tracer
        front end (e.g. "snapToleranceDeg"). Unknown keys are logged and
        ignored; missing keys keep their defaults. Values are checked
        when the instance is built.

        Args:
            data: Flat mapping of option names to values

        Returns:
            CleanupOptions instance

        Raises:
            ConfigError: If a value is not a usable number
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}

        for key, value in data.items():
            name = CAMEL_CASE_ALIASES.get(key, key)
            if name not in known:
                logger.warning(f"Ignoring unknown cleanup option: {key}")
                continue
            values[name] = value

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary for JSON serialization."""
        return asdict(self)


BOOLEAN_OPTIONS = {"use_45_deg"}

# Must be strictly positive; every other numeric option may be zero
POSITIVE_OPTIONS = {
    "snap_tolerance_deg",
    "parallel_angle_tolerance",
    "colinear_angle_tolerance",
    "room_grid_tolerance",
}


def _number(name: str, value: Any) -> float:
    """Coerce an option value to a finite float within its allowed range."""
    if isinstance(value, bool) or value is None:
        raise ConfigError(f"Option {name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Option {name} must be a number, got {value!r}") from e

    if not math.isfinite(number):
        raise ConfigError(f"Option {name} must be finite, got {value!r}")
    if name in POSITIVE_OPTIONS and number <= 0:
        raise ConfigError(f"Option {name} must be positive, got {value!r}")
    if number < 0:
        raise ConfigError(f"Option {name} must not be negative, got {value!r}")
    return number


# camelCase option names accepted from the tracer front end
CAMEL_CASE_ALIASES = {
    "minArea": "min_area",
    "snapToleranceDeg": "snap_tolerance_deg",
    "use45Deg": "use_45_deg",
    "gridSize": "grid_size",
    "mergeDistance": "merge_distance",
    "parallelAngleTolerance": "parallel_angle_tolerance",
    "colinearAngleTolerance": "colinear_angle_tolerance",
    "maxGap": "max_gap",
    "minRoomArea": "min_room_area",
    "roomDetectionGap": "room_detection_gap",
    "roomGridTolerance": "room_grid_tolerance",
    "closedTolerance": "closed_tolerance",
    "minWallLength": "min_wall_length",
    "wallThickness": "wall_thickness",
    "openingThreshold": "opening_threshold",
    "exteriorThickness": "exterior_thickness",
    "interiorThickness": "interior_thickness",
}


def load_settings(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML settings file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed settings mapping (empty for an empty file)

    Raises:
        ConfigError: If the file is missing, unparsable or not a mapping
    """
    settings_path = Path(path)
    if not settings_path.exists():
        raise ConfigError(f"Settings file not found: {settings_path}")

    try:
        with open(settings_path) as f:
            settings = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse settings file {settings_path}: {e}") from e

    if settings is None:
        return {}
    if not isinstance(settings, dict):
        raise ConfigError(f"Settings file must contain a mapping: {settings_path}")
    return settings


def load_options(path: Union[str, Path]) -> CleanupOptions:
    """
    Load cleanup options from a YAML settings file.

    The options may sit at the top level or under a "cleanup" section.

    Raises:
        ConfigError: If the file or its "cleanup" section is unusable
    """
    settings = load_settings(path)

    section = settings.get("cleanup", settings)
    if not isinstance(section, dict):
        raise ConfigError(f"'cleanup' section must be a mapping: {path}")

    # Top-level layout may carry other sections alongside the options
    if section is settings:
        section = {k: v for k, v in settings.items() if not isinstance(v, dict)}

    logger.debug(f"Loaded {len(section)} cleanup options from {path}")
    return CleanupOptions.from_dict(section)


def coerce_options(
    options: Union[CleanupOptions, Mapping[str, Any], None]
) -> CleanupOptions:
    """Accept a CleanupOptions, a flat mapping, or None."""
    if isinstance(options, CleanupOptions):
        return options
    return CleanupOptions.from_dict(options)
