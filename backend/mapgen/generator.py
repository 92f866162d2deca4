# mapgen/generator.py
import logging
import random
from collections import namedtuple
from typing import Dict, List, Optional, Tuple

import numpy as np

from mapgen.grid import GRASS, OUT_OF_GAME, WALL, WATER, Grid, TerrainCategory, find_structures
from mapgen.merge import StructureMerger
from mapgen.placement import MAX_ATTEMPTS, PLACEMENT_ORDER, PlacementEngine, PlacementRecord
from mapgen.rules import SECTIONS_GRID, band_coverage, exceeds_cap, section_edges
from mapgen.scanner import (BLOCKING_SEVERITIES, FinalRepairPass, GlobalInvariantScanner,
                            Violation, validate_grid)
from mapgen.symmetry import MirrorFlags, SymmetryEnforcer
from mapgen.templates import TemplateCatalog
from mapgen.zones import ZonePlan, ZonePlanner

logger = logging.getLogger(__name__)

__all__ = ["ConfigurationError", "GenerationConfig", "GenerationReport", "generate",
           "validate_config", "validate_grid", "Violation"]


class ConfigurationError(ValueError):
    """Structurally invalid generation input."""


GenerationConfig = namedtuple(
    "GenerationConfig",
    "rows cols wall_density_pct water_density_pct grass_density_pct "
    "mirror_vertical mirror_horizontal mirror_diagonal seed use_patterns "
    "forced_placements max_attempts",
    defaults=(33, 21, 10, 5, 10, False, False, False, None, None, (), MAX_ATTEMPTS),
)

DENSITY_FIELDS = {
    WALL: "wall_density_pct",
    WATER: "water_density_pct",
    GRASS: "grass_density_pct",
}

# (bucket, exclusive upper bound) for tiles placed per commit
SIZE_BUCKETS = (("tiny", 4), ("small", 9), ("medium", 21), ("large", None))


def validate_config(config: GenerationConfig, catalog: TemplateCatalog):
    if not isinstance(config.rows, int) or not isinstance(config.cols, int) \
            or config.rows <= 0 or config.cols <= 0:
        raise ConfigurationError(f"Grid dimensions must be positive integers, got {config.rows}x{config.cols}.")
    for category, field in DENSITY_FIELDS.items():
        value = getattr(config, field)
        if value is None or not 0 <= value <= 100:
            raise ConfigurationError(f"{field} must be within [0, 100], got {value}.")
        if value > 0 and not catalog.has(category):
            raise ConfigurationError(f"No {category.name.lower()} templates available for a non-zero density.")
    if config.max_attempts is None or config.max_attempts < 0:
        raise ConfigurationError("max_attempts must be zero or positive.")
    for request in config.forced_placements:
        row, col = request.anchor
        template = request.template
        if row < 0 or col < 0 or row + template.height > config.rows or col + template.width > config.cols:
            raise ConfigurationError(
                f"Forced template '{template.name}' at ({row},{col}) does not fit a "
                f"{config.rows}x{config.cols} grid.")


def mirror_flags(config: GenerationConfig) -> MirrorFlags:
    return MirrorFlags(bool(config.mirror_vertical), bool(config.mirror_horizontal), bool(config.mirror_diagonal))


def size_bucket(tiles: int) -> str:
    for name, upper in SIZE_BUCKETS:
        if upper is None or tiles < upper:
            return name
    return SIZE_BUCKETS[-1][0]


class GenerationReport:
    """Statistics gathered over one run. Only ever read by callers, never by the engine."""

    def __init__(self, seed):
        self.seed = seed
        self.counts: Dict[str, int] = {}
        self.structures: List[dict] = []
        self.size_distribution: Dict[str, int] = {name: 0 for name, _ in SIZE_BUCKETS}
        self.zone_coverage: List[dict] = []
        self.section_coverage: List[List[float]] = []
        self.mid_coverage = 0.0
        self.backside_coverage = 0.0
        self.violations: Dict[str, int] = {}
        self.otg_count = 0
        self.symmetry_violations = 0
        self.residual_asymmetries = 0
        self.size_cap_violations = 0
        self.targets: Dict[str, dict] = {}
        self.merges = 0
        self.repairs = 0
        self.pattern_tiles = 0
        self.placements: List[PlacementRecord] = []

    @property
    def passed(self) -> bool:
        return self.otg_count == 0

    def to_dict(self):
        return {
            "seed": self.seed,
            "counts": self.counts,
            "structures": self.structures,
            "sizeDistribution": self.size_distribution,
            "zoneCoverage": self.zone_coverage,
            "sectionCoverage": self.section_coverage,
            "midCoverage": round(self.mid_coverage, 4),
            "backsideCoverage": round(self.backside_coverage, 4),
            "violations": self.violations,
            "otgCount": self.otg_count,
            "symmetryViolations": self.symmetry_violations,
            "residualAsymmetries": self.residual_asymmetries,
            "sizeCapViolations": self.size_cap_violations,
            "targets": self.targets,
            "merges": self.merges,
            "repairs": self.repairs,
            "patternTiles": self.pattern_tiles,
            "placements": [
                {"category": r.category.name.lower(), "anchor": list(r.anchor),
                 "tilesPlaced": r.tiles_placed, "template": r.template}
                for r in self.placements
            ],
            "passed": self.passed,
        }


def _section_grid(cells: np.ndarray) -> List[List[float]]:
    rows, cols = cells.shape
    r_edges, c_edges = section_edges(rows), section_edges(cols)
    out = []
    for i in range(SECTIONS_GRID):
        line = []
        for j in range(SECTIONS_GRID):
            block = cells[r_edges[i]:r_edges[i + 1], c_edges[j]:c_edges[j + 1]]
            line.append(round(np.count_nonzero(block) / block.size, 4) if block.size else 0.0)
        out.append(line)
    return out


def _fill_report(report: GenerationReport, grid: Grid, zones: ZonePlan, engine: PlacementEngine,
                 enforcer: SymmetryEnforcer):
    cells = grid.cells
    for category in TerrainCategory:
        report.counts[category.name.lower()] = grid.count(category)

    for category in (WALL, WATER, GRASS):
        for structure in find_structures(cells, category):
            top, left, bottom, right = structure.bounds
            report.structures.append({
                "category": category.name.lower(),
                "size": structure.size,
                "length": structure.length,
                "thickness": structure.thickness,
                "bounds": [top, left, bottom, right],
            })
            # merged bushes are allowed past the single-structure cap
            if category != GRASS and exceeds_cap(category, structure.size, structure.length, structure.thickness):
                report.size_cap_violations += 1

    report.placements = list(engine.records)
    for record in report.placements:
        report.size_distribution[size_bucket(record.tiles_placed)] += 1

    for zone in zones.all_zones():
        data = zone.to_dict()
        data["coverage"] = round(zones.coverage(zone, cells), 4)
        report.zone_coverage.append(data)
    report.section_coverage = _section_grid(cells)
    report.mid_coverage, report.backside_coverage = band_coverage(cells)

    violations = validate_grid(grid)
    report.violations = GlobalInvariantScanner.summarize(violations)
    report.otg_count = sum(1 for v in violations if v.severity in BLOCKING_SEVERITIES)
    report.residual_asymmetries = enforcer.count_asymmetries(grid)

    for category, stats in engine.stats.items():
        data = stats.to_dict()
        # final count after merge, symmetry and repair
        data["final"] = grid.count(category)
        report.targets[category.name.lower()] = data


def generate(config: GenerationConfig = GenerationConfig(), catalog: Optional[TemplateCatalog] = None,
             rng: Optional[random.Random] = None) -> Tuple[Grid, GenerationReport]:
    """
    Runs one full generation and returns the grid plus its report.

    Raises ConfigurationError for structurally invalid input only; shortfalls and
    residual violations are reported, never raised.
    """
    catalog = catalog or TemplateCatalog()
    validate_config(config, catalog)
    rng = rng or random.Random(config.seed)
    flags = mirror_flags(config)
    logger.info("Generating %dx%d map (seed=%s, mirrors=%s)", config.rows, config.cols, config.seed,
                [name for name, on in flags._asdict().items() if on] or "none")

    grid = Grid(config.rows, config.cols)
    zones = ZonePlanner(rng).plan(config.rows, config.cols)
    logger.debug("Zones: %s", zones.all_zones())
    engine = PlacementEngine(grid, zones, catalog, flags, rng, max_attempts=config.max_attempts)
    report = GenerationReport(config.seed)

    if config.forced_placements or config.wall_density_pct > 0:
        use_patterns = config.use_patterns if config.wall_density_pct > 0 else False
        report.pattern_tiles = engine.run_pattern_phase(config.forced_placements, use_patterns)

    for category in PLACEMENT_ORDER:
        engine.fill(category, getattr(config, DENSITY_FIELDS[category]))
        if category == GRASS:
            report.merges = StructureMerger(GRASS).merge(grid)

    enforcer = SymmetryEnforcer(flags)
    report.symmetry_violations = enforcer.enforce(grid)
    report.repairs = FinalRepairPass(flags).run(grid)

    if np.any(grid.cells == OUT_OF_GAME):
        logger.error("Out-of-game tiles found in a generated grid")
    _fill_report(report, grid, zones, engine, enforcer)

    if report.otg_count:
        logger.warning("Final validation: %d critical/high cells remain", report.otg_count)
    else:
        logger.info("Final validation passed: %s", report.violations)
    return grid, report
