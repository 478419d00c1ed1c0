#!/usr/bin/env python
"""
Sketch Cleanup - Installation Verification Script

Run this script to verify all dependencies are correctly installed.
"""

import sys
from pathlib import Path

# Add project root to path for package import
sys.path.insert(0, str(Path(__file__).parent.parent))


def check_package(name: str, import_name: str = None, version_attr: str = "__version__") -> tuple[bool, str]:
    """Check if a package is installed and return version."""
    import_name = import_name or name
    try:
        module = __import__(import_name)
        version = getattr(module, version_attr, "unknown")
        return True, str(version)
    except ImportError as e:
        return False, str(e)


def check_shapely_geos() -> tuple[bool, str]:
    """Check that shapely can build and validate a polygon."""
    try:
        from shapely.geometry import Polygon
        square = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])
        if not square.is_valid or square.area != 100:
            return False, f"unexpected result: valid={square.is_valid}, area={square.area}"
        import shapely
        return True, f"GEOS {shapely.geos_version_string}"
    except Exception as e:
        return False, str(e)


def check_constants() -> tuple[bool, str]:
    """Check if constants module loads correctly."""
    try:
        from sketch_cleanup.constants import (
            DEFAULT_SNAP_TOLERANCE_DEG,
            PARALLEL_DISTANCE_TOLERANCE,
            DEFAULT_MIN_ROOM_AREA,
        )
        return True, (
            f"loaded ({DEFAULT_SNAP_TOLERANCE_DEG=}, {PARALLEL_DISTANCE_TOLERANCE=}, "
            f"{DEFAULT_MIN_ROOM_AREA=})"
        )
    except ImportError as e:
        return False, str(e)


def check_settings() -> tuple[bool, str]:
    """Check if settings.yaml loads into cleanup options."""
    try:
        from sketch_cleanup.config import load_options, load_settings
        settings_path = Path(__file__).parent.parent / "config" / "settings.yaml"
        if not settings_path.exists():
            return False, "settings.yaml not found"
        settings = load_settings(settings_path)
        options = load_options(settings_path)
        sections = list(settings.keys())
        return True, f"sections: {', '.join(sections)} (min_area={options.min_area})"
    except Exception as e:
        return False, str(e)


def check_pipeline() -> tuple[bool, str]:
    """Run the cleanup on a square and check one room comes out."""
    try:
        from sketch_cleanup import Segments, cleanup
        square = [
            {"start": [0, 0], "end": [100, 0]},
            {"start": [100, 0], "end": [100, 100]},
            {"start": [100, 100], "end": [0, 100]},
            {"start": [0, 100], "end": [0, 0]},
        ]
        result = cleanup(Segments(square))
        if len(result.rooms) != 1:
            return False, f"expected 1 room, got {len(result.rooms)}"
        return True, f"1 room, area {result.rooms[0].area:.0f}"
    except Exception as e:
        return False, str(e)


def main():
    print("=" * 60)
    print("Sketch Cleanup - Installation Verification")
    print("=" * 60)
    print()

    results = []

    # Core packages
    print("Core Dependencies:")
    print("-" * 40)

    packages = [
        ("numpy", "numpy", "__version__"),
        ("shapely", "shapely", "__version__"),
        ("pyyaml", "yaml", "__version__"),
    ]

    for name, import_name, version_attr in packages:
        ok, info = check_package(name, import_name, version_attr)
        status = "PASS" if ok else "FAIL"
        print(f"  {name:25} [{status}] {info}")
        results.append((name, ok))

    ok, info = check_shapely_geos()
    status = "PASS" if ok else "FAIL"
    print(f"  {'geos':25} [{status}] {info}")
    results.append(("geos", ok))

    print()
    print("Configuration:")
    print("-" * 40)

    # Constants
    ok, info = check_constants()
    status = "PASS" if ok else "FAIL"
    print(f"  {'constants.py':25} [{status}] {info}")
    results.append(("constants", ok))

    # Settings
    ok, info = check_settings()
    status = "PASS" if ok else "FAIL"
    print(f"  {'settings.yaml':25} [{status}] {info}")
    results.append(("settings", ok))

    print()
    print("Smoke Test:")
    print("-" * 40)

    ok, info = check_pipeline()
    status = "PASS" if ok else "FAIL"
    print(f"  {'cleanup':25} [{status}] {info}")
    results.append(("cleanup", ok))

    print()
    print("=" * 60)

    # Summary
    passed = sum(1 for _, ok in results if ok)
    total = len(results)

    if passed == total:
        print(f"ALL CHECKS PASSED ({passed}/{total})")
        print("Environment is ready for sketch cleanup.")
        return 0
    else:
        failed = [name for name, ok in results if not ok]
        print(f"SOME CHECKS FAILED ({passed}/{total})")
        print(f"Failed: {', '.join(failed)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
