from typing import Any, Dict, List, Tuple

from mapgen.grid import MAP_SIZES, TerrainCategory

MAX_DIMENSION = 200
VALID_TILES = {int(t) for t in TerrainCategory}


def validate_generation_settings(settings: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Quick feasibility checks on a generation request before running the engine."""
    errors: List[str] = []
    size = settings.get("mapSize", "3v3")
    if size not in MAP_SIZES:
        errors.append(f'Unknown map size "{size}". Expected one of: {", ".join(MAP_SIZES)}.')

    for key in ("rows", "cols"):
        value = settings.get(key)
        if value is not None and not 0 < value <= MAX_DIMENSION:
            errors.append(f"{key} must be between 1 and {MAX_DIMENSION}.")

    for key in ("wallDensity", "waterDensity", "grassDensity"):
        value = settings.get(key, 0)
        if value is None or not 0 <= value <= 100:
            errors.append(f"{key} must be a percentage between 0 and 100.")

    return (len(errors) == 0, errors)


def validate_tiles(tiles: List[List[int]]) -> Tuple[bool, List[str]]:
    """Shape and tile-code checks for a hand-supplied grid."""
    errors: List[str] = []
    if not tiles or not tiles[0]:
        errors.append("Grid is empty.")
        return (False, errors)

    width = len(tiles[0])
    for r, row in enumerate(tiles):
        if len(row) != width:
            errors.append(f"Row {r + 1} has {len(row)} tiles, expected {width}.")
            continue
        bad = sorted({t for t in row if t not in VALID_TILES})
        if bad:
            errors.append(f"Row {r + 1} has unknown tile codes {bad}.")

    return (len(errors) == 0, errors)
