# mapgen/scanner.py
import logging
from collections import Counter, namedtuple
from typing import Dict, List, Set, Tuple

import numpy as np

from mapgen.grid import (DIAGONAL, EMPTY, GRASS, ORTHOGONAL, OUT_OF_GAME, WALL, WATER, Grid,
                         find_structures, neighbor_counts, probe, shifted_mask)
from mapgen.symmetry import MirrorFlags, mirror_orbit

logger = logging.getLogger(__name__)

Violation = namedtuple("Violation", "row col severity kind")

CRITICAL, HIGH, MEDIUM, LOW = "critical", "high", "medium", "low"
SEVERITIES = (CRITICAL, HIGH, MEDIUM, LOW)
# Only these undo a placement; corridors and protrusions are tolerated
BLOCKING_SEVERITIES = (CRITICAL, HIGH)

MAX_REPAIR_PASSES = 10
MIN_WATER_STRUCTURE = 8


class GlobalInvariantScanner:
    """Brute-force full-grid sweep that classifies out-of-the-game (OTG) cells by severity."""

    def scan(self, cells: np.ndarray) -> List[Violation]:
        filled = cells != EMPTY
        empty = ~filled
        ortho, diag = neighbor_counts(filled)
        # the map edge walls a cell in just like a tile does
        closed_ortho, closed_diag = neighbor_counts(filled, edge=True)

        critical = empty & (closed_ortho == 4)
        high = empty & (closed_ortho == 3) & (closed_diag >= 1)
        north, south = shifted_mask(filled, -1, 0), shifted_mask(filled, 1, 0)
        west, east = shifted_mask(filled, 0, -1), shifted_mask(filled, 0, 1)
        corridor = empty & ((north & south) | (east & west)) & ~critical & ~high

        same = np.zeros(cells.shape, dtype=np.int8)
        for category in (WALL, WATER, GRASS, OUT_OF_GAME):
            mask = cells == category
            c_ortho, c_diag = neighbor_counts(mask)
            same = np.where(mask, c_ortho + c_diag, same)
        different = (ortho + diag) - same
        protrusion = filled & (same == 0) & (different >= 1)

        found = []
        for mask, severity, kind in ((critical, CRITICAL, "trapped-gap"),
                                     (high, HIGH, "three-sided-trap"),
                                     (corridor, MEDIUM, "one-tile-corridor"),
                                     (protrusion, LOW, "bare-protrusion")):
            found.extend(Violation(int(r), int(c), severity, kind) for r, c in np.argwhere(mask))
        found.sort(key=lambda v: (v.row, v.col))
        return found

    def blocking_cells(self, cells: np.ndarray) -> Set[Tuple[int, int]]:
        return {(v.row, v.col) for v in self.scan(cells) if v.severity in BLOCKING_SEVERITIES}

    @staticmethod
    def summarize(violations: List[Violation]) -> Dict[str, int]:
        counts = Counter(v.severity for v in violations)
        return {s: counts.get(s, 0) for s in SEVERITIES}


def validate_grid(grid: Grid) -> List[Violation]:
    """Standalone diagnostics for any grid, generated or hand-edited."""
    return GlobalInvariantScanner().scan(grid.cells)


class FinalRepairPass:
    """
    Relieves trapped empty cells by deleting the neighbouring tile that belongs
    to the smallest structure. Repeats until no critical/high cell remains (or
    the pass limit is hit). Every removal takes the cell's whole mirror orbit
    so an already symmetric grid stays symmetric. Water structures that fall
    under the minimum size are dropped entirely.
    """

    def __init__(self, flags: MirrorFlags = MirrorFlags(), max_passes=MAX_REPAIR_PASSES,
                 min_water_size=MIN_WATER_STRUCTURE):
        self.flags, self.max_passes, self.min_water_size = flags, max_passes, min_water_size
        self.scanner = GlobalInvariantScanner()

    def _clear(self, grid: Grid, row, col) -> int:
        cleared = 0
        for r, c in mirror_orbit(grid.rows, grid.cols, row, col, self.flags):
            if grid.cells[r, c] != EMPTY:
                grid.cells[r, c] = EMPTY
                cleared += 1
        return cleared

    def _relieve(self, grid: Grid, row, col) -> int:
        cells = grid.cells

        def closed(r, c):
            return not grid.in_bounds(r, c) or cells[r, c] != EMPTY

        if cells[row, col] != EMPTY:
            return 0
        sides = sum(closed(row + dr, col + dc) for dr, dc in ORTHOGONAL)
        diagonal = any(closed(row + dr, col + dc) for dr, dc in DIAGONAL)
        if sides < 3 or (sides == 3 and not diagonal):
            return 0  # an earlier fix in this pass already opened it up
        # only real tiles can be removed; the map edge stays
        neighbors = [(row + dr, col + dc) for dr, dc in ORTHOGONAL
                     if grid.in_bounds(row + dr, col + dc) and cells[row + dr, col + dc] != EMPTY]
        if not neighbors:
            return 0

        smallest, smallest_size = None, None
        for r, c in neighbors:
            size = probe(cells, r, c).size
            if smallest_size is None or size < smallest_size:
                smallest, smallest_size = (r, c), size
        logger.debug("Relieving trap at (%d,%d): removing (%d,%d) from a %d-tile structure",
                     row, col, smallest[0], smallest[1], smallest_size)
        return self._clear(grid, *smallest)

    def _prune_small_water(self, grid: Grid) -> int:
        cleared = 0
        for structure in find_structures(grid.cells, WATER):
            if structure.size < self.min_water_size:
                for r, c in structure.cells:
                    cleared += self._clear(grid, r, c)
        return cleared

    def run(self, grid: Grid) -> int:
        """Returns the number of tiles removed."""
        removed = 0
        for pass_no in range(1, self.max_passes + 1):
            targets = sorted(self.scanner.blocking_cells(grid.cells))
            fixed = sum(self._relieve(grid, r, c) for r, c in targets)
            pruned = self._prune_small_water(grid)
            removed += fixed + pruned
            if fixed or pruned:
                logger.info("Repair pass %d: %d trapped cells, removed %d tiles (%d from small water)",
                            pass_no, len(targets), fixed + pruned, pruned)
            if not fixed and not pruned:
                break
        else:
            remaining = len(self.scanner.blocking_cells(grid.cells))
            if remaining:
                logger.warning("Repair pass limit reached with %d trapped cells left", remaining)
        return removed
