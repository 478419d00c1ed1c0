# Sketch geometry cleanup engine

from .config import CleanupOptions, ConfigError, load_options
from .diagnostics import Diagnostics, DiagnosticEvent, DiagnosticCode
from .pipeline import (
    Segments,
    Polylines,
    CleanupResult,
    cleanup,
    cleanup_geometry,
    cleanup_from_polylines,
)
from .contract import (
    build_topology_result,
    compute_bounds,
    validate_topology_result,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "CleanupOptions",
    "ConfigError",
    "load_options",
    # Diagnostics
    "Diagnostics",
    "DiagnosticEvent",
    "DiagnosticCode",
    # Pipeline
    "Segments",
    "Polylines",
    "CleanupResult",
    "cleanup",
    "cleanup_geometry",
    "cleanup_from_polylines",
    # Contract
    "build_topology_result",
    "compute_bounds",
    "validate_topology_result",
]
