# mapgen/placement.py
import logging
import math
import random
from collections import Counter, namedtuple
from typing import Iterable, List, Optional, Tuple

from mapgen.grid import EMPTY, GRASS, WALL, WATER, Grid, TerrainCategory, find_structures, mid_band
from mapgen.rules import ValidityChecker
from mapgen.scanner import GlobalInvariantScanner
from mapgen.symmetry import MirrorFlags, mirror_anchors
from mapgen.templates import Template, TemplateCatalog
from mapgen.zones import ZonePlan

logger = logging.getLogger(__name__)

# === Placement budget ===
MAX_ATTEMPTS = 5000
PLACEMENT_ORDER = (WALL, GRASS, WATER)
WATER_MAX_SHARE = 0.10
MAX_WATER_STRUCTURES = 2
MIN_WATER_TEMPLATE = 8
WATER_COL_MARGIN = 5
COMPOSITE_WALL_CHANCE = 0.15
PATTERN_PHASE_CHANCE = 0.30
PATTERN_CHANCE = 0.5

PlacementRequest = namedtuple("PlacementRequest", "template anchor")
PlacementRecord = namedtuple("PlacementRecord", "category anchor tiles_placed template")

# Hand-picked wall shapes for the structured pattern phase
CORRIDOR_WALL = Template("corridor_2x3", [[1, 1], [1, 1], [1, 1]], 1)
CORRIDOR_POST = Template("corridor_2x2", [[1, 1], [1, 1]], 1)
CHOKEPOINT_WALL = Template("chokepoint_2x4", [[1, 1], [1, 1], [1, 1], [1, 1]], 1)
FORTIFICATION_WALLS = (
    Template("fort_2x3", [[1, 1], [1, 1], [1, 1]], 1),
    Template("fort_3x2", [[1, 1, 1], [1, 1, 1]], 1),
    Template("fort_L", [[1, 1, 1], [1, 0, 0]], 1),
    Template("fort_S", [[0, 1, 1], [1, 1, 0]], 1),
)


def target_tiles(category, density_pct, total) -> int:
    target = math.floor(density_pct / 100 * total)
    if category == WATER:
        target = min(target, math.floor(WATER_MAX_SHARE * total))
    return target


class CategoryStats:
    def __init__(self, category, target):
        self.category, self.target = TerrainCategory(category), target
        self.placed, self.attempts, self.placements = 0, 0, 0
        self.rejections = Counter()

    def to_dict(self):
        return {
            "target": self.target,
            "placed": self.placed,
            "shortfall": max(0, self.target - self.placed),
            "attempts": self.attempts,
            "placements": self.placements,
            "rejections": dict(self.rejections),
        }


class PlacementEngine:
    """
    Sample -> zone gate -> mirror -> validate all -> commit all -> global scan ->
    keep or roll back. Every placement, random or hand-picked, goes through
    `try_place`.
    """

    def __init__(self, grid: Grid, zones: ZonePlan, catalog: TemplateCatalog, flags: MirrorFlags,
                 rng: random.Random, max_attempts=MAX_ATTEMPTS):
        self.grid, self.zones, self.catalog, self.flags, self.rng = grid, zones, catalog, flags, rng
        self.max_attempts = max_attempts
        self.checker = ValidityChecker()
        self.scanner = GlobalInvariantScanner()
        self.records: List[PlacementRecord] = []
        self.stats = {}
        self.region_history = {0: [], 1: [], 2: []}
        self._blocking = self.scanner.blocking_cells(grid.cells)
        self._rejections = Counter()

    def refresh_baseline(self):
        # the grid may have changed outside try_place (merging, hand edits)
        self._blocking = self.scanner.blocking_cells(self.grid.cells)

    def region_of(self, row) -> int:
        start, end = mid_band(self.grid.rows)
        if row < start:
            return 0
        return 1 if row <= end else 2

    # === Atomic commit pipeline ===
    def _validate_all(self, template, anchors, category) -> bool:
        # each mirrored copy is checked against the grid plus the copies before it
        scratch = self.grid.cells
        for idx, anchor in enumerate(anchors):
            if not self.checker.is_valid(template, anchor, scratch, category):
                self._rejections[self.checker.last_reason] += 1
                return False
            if idx < len(anchors) - 1:
                if scratch is self.grid.cells:
                    scratch = scratch.copy()
                for r, c in template.footprint(*anchor):
                    scratch[r, c] = category
        return True

    def _commit(self, template, anchors, category) -> List[Tuple[int, int]]:
        written = []
        for anchor in anchors:
            for r, c in template.footprint(*anchor):
                if self.grid.cells[r, c] == EMPTY:
                    self.grid.cells[r, c] = category
                    written.append((r, c))
        return written

    def _rollback(self, written):
        for r, c in written:
            self.grid.cells[r, c] = EMPTY

    def _water_anchors_ok(self, template, anchors) -> bool:
        start, end = mid_band(self.grid.rows)
        return all(start <= r and r + template.height - 1 <= end for r, _ in anchors)

    def try_place(self, template: Template, anchor, category) -> Optional[PlacementRecord]:
        category = TerrainCategory(category)
        row, col = anchor
        anchors = mirror_anchors(self.grid.rows, self.grid.cols, template.height, template.width,
                                 row, col, self.flags)
        if not anchors or anchors[0] != (row, col):
            self._rejections["out_of_bounds"] += 1
            return None
        if category == WATER and not self._water_anchors_ok(template, anchors):
            self._rejections["water_band"] += 1
            return None
        if not self._validate_all(template, anchors, category):
            return None

        written = self._commit(template, anchors, category)
        blocking = self.scanner.blocking_cells(self.grid.cells)
        if blocking - self._blocking:
            self._rollback(written)
            self._rejections["post_scan"] += 1
            return None
        if category == WATER and len(find_structures(self.grid.cells, WATER)) > MAX_WATER_STRUCTURES:
            self._rollback(written)
            self._rejections["water_budget"] += 1
            return None

        self._blocking = blocking
        record = PlacementRecord(category, (row, col), len(written), template.name)
        self.records.append(record)
        logger.debug("Placed %s '%s' at %s (%d anchors, %d tiles)",
                     category.name, template.name, anchors, len(anchors), len(written))
        return record

    def place_requests(self, requests: Iterable[PlacementRequest], category=WALL) -> int:
        placed = 0
        for request in requests:
            record = self.try_place(request.template, tuple(request.anchor), category)
            if record:
                placed += record.tiles_placed
        return placed

    # === Structured pattern phase ===
    def structured_patterns(self) -> List[PlacementRequest]:
        rows, cols, rng = self.grid.rows, self.grid.cols, self.rng
        start, end = mid_band(rows)
        requests = []

        if rng.random() < PATTERN_CHANCE:
            # corridor: a line of walls with 3-tile gaps
            count = rng.randint(3, 5)
            if rng.random() < 0.5:
                col = 5 + rng.randrange(max(1, cols - 10))
                for i in range(count):
                    row = start + i * 4
                    if row + CORRIDOR_WALL.height <= end:
                        requests.append(PlacementRequest(CORRIDOR_WALL, (row, col)))
            else:
                row = start + rng.randrange(7)
                for i in range(count):
                    col = 2 + i * 4
                    if col + CORRIDOR_POST.width < cols:
                        requests.append(PlacementRequest(CORRIDOR_POST, (row, col)))

        if rng.random() < PATTERN_CHANCE:
            # fortification: a tight cluster of 4-6 walls in one backside
            fort_row = 2 if rng.random() < 0.5 else max(0, rows - 9)
            fort_col = 5 + rng.randrange(7)
            for _ in range(rng.randint(4, 6)):
                template = rng.choice(FORTIFICATION_WALLS)
                requests.append(PlacementRequest(template, (fort_row + rng.randrange(5),
                                                            fort_col + rng.randrange(5))))

        if rng.random() < PATTERN_CHANCE:
            # chokepoint: two large walls 2-3 tiles apart
            gap = rng.randint(2, 3)
            row = start + rng.randrange(5)
            left = 3
            right = left + CHOKEPOINT_WALL.width + gap + CHOKEPOINT_WALL.width
            if right + CHOKEPOINT_WALL.width <= cols:
                requests.append(PlacementRequest(CHOKEPOINT_WALL, (row, left)))
                requests.append(PlacementRequest(CHOKEPOINT_WALL, (row, right)))

        if rng.random() < PATTERN_CHANCE and self.flags.vertical:
            # mirror lane: left-side walls, the vertical mirror builds the right side
            for i in range(rng.randint(3, 4)):
                row = start + i * 3
                if row + CORRIDOR_WALL.height <= end:
                    requests.append(PlacementRequest(CORRIDOR_WALL, (row, 2)))
        return requests

    def run_pattern_phase(self, forced=(), use_patterns=None) -> int:
        requests = list(forced)
        self.refresh_baseline()
        if use_patterns is None:
            use_patterns = self.rng.random() < PATTERN_PHASE_CHANCE
        if use_patterns:
            requests.extend(self.structured_patterns())
        if not requests:
            return 0
        placed = self.place_requests(requests, WALL)
        logger.info("Pattern phase: %d requests, %d wall tiles placed", len(requests), placed)
        return placed

    # === Density loop ===
    def _sample(self, category) -> Tuple[Optional[Template], Optional[Tuple[int, int]]]:
        rows, cols, rng = self.grid.rows, self.grid.cols, self.rng
        if category == WATER:
            template = self.catalog.choose(WATER, rng, self.region_history[1])
            if template.size < MIN_WATER_TEMPLATE:
                self._rejections["water_template_small"] += 1
                return None, None
            start, end = mid_band(rows)
            last_row = end - template.height + 1
            lo, hi = WATER_COL_MARGIN, cols - WATER_COL_MARGIN - template.width
            if hi < lo:
                lo, hi = 0, cols - template.width
            if last_row < start or hi < lo:
                self._rejections["out_of_bounds"] += 1
                return None, None
            return template, (rng.randint(start, last_row), rng.randint(lo, hi))

        template = self.catalog.choose(category, rng, self.region_history[self.region_of(rng.randrange(rows))])
        if template.height > rows or template.width > cols:
            self._rejections["out_of_bounds"] += 1
            return None, None
        return template, (rng.randint(0, rows - template.height), rng.randint(0, cols - template.width))

    def _composite_walls(self, row, col) -> int:
        added = 0
        for _ in range(self.rng.randint(1, 2)):
            r = row + self.rng.randint(-3, 3)
            c = col + self.rng.randint(-3, 3)
            template = self.catalog.choose(WALL, self.rng, self.region_history[self.region_of(r)])
            r = max(0, min(r, self.grid.rows - template.height))
            c = max(0, min(c, self.grid.cols - template.width))
            record = self.try_place(template, (r, c), WALL)
            if record:
                added += record.tiles_placed
        return added

    def fill(self, category, density_pct) -> CategoryStats:
        category = TerrainCategory(category)
        stats = CategoryStats(category, target_tiles(category, density_pct, self.grid.total))
        self.stats[category] = stats
        self._rejections = stats.rejections
        stats.placed = self.grid.count(category)
        self.refresh_baseline()
        if stats.target <= 0:
            return stats

        logger.info("Placing %s: target %d tiles", category.name, stats.target)
        water_structures = len(find_structures(self.grid.cells, WATER)) if category == WATER else 0
        while stats.placed < stats.target and stats.attempts < self.max_attempts:
            if category == WATER and water_structures >= MAX_WATER_STRUCTURES:
                break
            stats.attempts += 1
            template, anchor = self._sample(category)
            if template is None:
                continue
            zone = self.zones.zone_at(*anchor)
            if self.zones.coverage(zone, self.grid.cells) >= zone.target_coverage:
                stats.rejections["zone_full"] += 1
                continue
            record = self.try_place(template, anchor, category)
            if record is None:
                continue
            stats.placed += record.tiles_placed
            stats.placements += 1
            if category == WALL and self.rng.random() < COMPOSITE_WALL_CHANCE:
                stats.placed += self._composite_walls(*anchor)
            if category == WATER:
                water_structures = len(find_structures(self.grid.cells, WATER))

        if stats.placed < stats.target:
            logger.warning("%s shortfall: placed %d/%d tiles after %d attempts",
                           category.name, stats.placed, stats.target, stats.attempts)
        else:
            logger.info("%s placed: %d/%d tiles in %d attempts",
                        category.name, stats.placed, stats.target, stats.attempts)
        return stats
