import logging
from typing import Any, Dict, List, Tuple

from app.config import Config
from app.services.map_code import tiles_to_map_code
from app.services.validator import validate_generation_settings, validate_tiles
from mapgen.generator import GenerationConfig, generate, validate_grid
from mapgen.grid import MAP_SIZES, Grid
from mapgen.scanner import BLOCKING_SEVERITIES, GlobalInvariantScanner

logger = logging.getLogger(__name__)


class SettingsError(ValueError):
    """Request settings that failed the pre-generation checks."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def build_config(settings: Dict[str, Any]) -> GenerationConfig:
    """Turns API-style settings (camelCase, map size preset) into an engine config."""
    ok, errors = validate_generation_settings(settings)
    if not ok:
        raise SettingsError(errors)

    rows, cols = MAP_SIZES[settings.get("mapSize", "3v3")]
    seed = settings.get("seed")
    return GenerationConfig(
        rows=settings.get("rows") or rows,
        cols=settings.get("cols") or cols,
        wall_density_pct=settings.get("wallDensity", 10),
        water_density_pct=settings.get("waterDensity", 5),
        grass_density_pct=settings.get("grassDensity", 10),
        mirror_vertical=bool(settings.get("mirrorVertical", False)),
        mirror_horizontal=bool(settings.get("mirrorHorizontal", False)),
        mirror_diagonal=bool(settings.get("mirrorDiagonal", False)),
        seed=seed if seed is not None else Config.DEFAULT_SEED,
        use_patterns=settings.get("usePatterns"),
        max_attempts=Config.MAX_ATTEMPTS,
    )


def generate_map(settings: Dict[str, Any]) -> Dict[str, Any]:
    config = build_config(settings)
    grid, report = generate(config)
    tiles = grid.to_list()
    logger.info("Generated %dx%d map: %s", grid.rows, grid.cols, report.counts)
    return {"tiles": tiles, "mapCode": tiles_to_map_code(tiles), "report": report.to_dict()}


def check_tiles(tiles: List[List[int]]) -> Tuple[List[Dict[str, Any]], Dict[str, int], bool]:
    """Runs the global scan over a supplied grid: (violations, counts per severity, passed)."""
    ok, errors = validate_tiles(tiles)
    if not ok:
        raise SettingsError(errors)
    violations = validate_grid(Grid.from_list(tiles))
    passed = not any(v.severity in BLOCKING_SEVERITIES for v in violations)
    return [v._asdict() for v in violations], GlobalInvariantScanner.summarize(violations), passed
