# mapgen/rules.py
import logging
from collections import namedtuple
from typing import List, Optional, Tuple

import numpy as np

from mapgen.grid import (EIGHT_NEIGHBORS, EMPTY, GRASS, ORTHOGONAL, WALL, WATER,
                         TerrainCategory, component_cells, mid_band)
from mapgen.templates import Template

logger = logging.getLogger(__name__)

# === Placement rules & constants ===
SizeCap = namedtuple("SizeCap", "max_size max_length max_thickness")
SIZE_CAPS = {
    WALL: SizeCap(20, 8, 3),
    GRASS: SizeCap(25, 10, 4),
    WATER: SizeCap(15, 8, 3),
}
MAX_HALF_COVERAGE = 0.50
MAX_SECTION_COVERAGE = 0.60
SECTIONS_GRID = 3


def section_edges(size: int) -> List[int]:
    return [i * size // SECTIONS_GRID for i in range(SECTIONS_GRID + 1)]


def section_index(row, col, rows, cols) -> Tuple[int, int]:
    return min(row * SECTIONS_GRID // rows, SECTIONS_GRID - 1), min(col * SECTIONS_GRID // cols, SECTIONS_GRID - 1)


def section_coverage(cells: np.ndarray, row: int, col: int) -> float:
    rows, cols = cells.shape
    sr, sc = section_index(row, col, rows, cols)
    r_edges, c_edges = section_edges(rows), section_edges(cols)
    block = cells[r_edges[sr]:r_edges[sr + 1], c_edges[sc]:c_edges[sc + 1]]
    return np.count_nonzero(block) / block.size if block.size else 0.0


def band_coverage(cells: np.ndarray) -> Tuple[float, float]:
    """(mid band coverage, backside coverage)."""
    rows = cells.shape[0]
    start, end = mid_band(rows)
    filled = cells != EMPTY
    mid = filled[start:end + 1]
    back_filled = np.count_nonzero(filled) - np.count_nonzero(mid)
    back_total = filled.size - mid.size
    mid_cov = np.count_nonzero(mid) / mid.size if mid.size else 0.0
    back_cov = back_filled / back_total if back_total else 0.0
    return mid_cov, back_cov


def structure_dims(cells: List[Tuple[int, int]]) -> Tuple[int, int, int]:
    """(size, bounding length, bounding thickness)."""
    rows = [r for r, _ in cells]
    cols = [c for _, c in cells]
    height = max(rows) - min(rows) + 1
    width = max(cols) - min(cols) + 1
    return len(cells), max(height, width), min(height, width)


def exceeds_cap(category, size, length, thickness) -> bool:
    cap = SIZE_CAPS.get(TerrainCategory(category))
    if cap is None:
        return False
    return size > cap.max_size or length > cap.max_length or thickness > cap.max_thickness


def _in_bounds(cells, r, c):
    return 0 <= r < cells.shape[0] and 0 <= c < cells.shape[1]


class ValidityChecker:
    """
    Decides whether a template may be committed at an anchor. All nine checks
    must pass; any failure rejects the whole candidate. The last failing rule
    is kept in `last_reason` for diagnostics.
    """

    def __init__(self):
        self.last_reason: Optional[str] = None

    def _reject(self, reason):
        self.last_reason = reason
        logger.debug("Placement rejected: %s", reason)
        return False

    def is_valid(self, template: Template, anchor: Tuple[int, int], cells: np.ndarray, category) -> bool:
        self.last_reason = None
        category = TerrainCategory(category)
        rows, cols = cells.shape
        row, col = anchor

        # 1. footprint in bounds
        if row < 0 or col < 0 or row + template.height > rows or col + template.width > cols:
            return self._reject("out_of_bounds")

        # 2. no overlap
        new_cells = template.footprint(row, col)
        if any(cells[r, c] != EMPTY for r, c in new_cells):
            return self._reject("overlap")

        # 3. hypothetical grid
        hypo = cells.copy()
        for r, c in new_cells:
            hypo[r, c] = category

        if not self._trapped_space_ok(hypo, new_cells):
            return self._reject("trapped_space")
        if not self._adjacency_ok(cells, new_cells, category):
            return self._reject("cross_category")
        if not self._size_cap_ok(hypo, new_cells, category):
            return self._reject("size_cap")
        if not self._half_balance_ok(hypo):
            return self._reject("half_balance")
        if category == WALL and not self._internal_corners_ok(template, anchor, hypo):
            return self._reject("internal_corner")
        # 9. coarse 3x3 section holding the anchor
        if section_coverage(hypo, row, col) > MAX_SECTION_COVERAGE:
            return self._reject("section_density")
        return True

    # 4. empty cells around the new footprint keep two open sides and are not squeezed
    def _trapped_space_ok(self, hypo, new_cells) -> bool:
        perimeter = set()
        for r, c in new_cells:
            for dr, dc in EIGHT_NEIGHBORS:
                nr, nc = r + dr, c + dc
                if _in_bounds(hypo, nr, nc) and hypo[nr, nc] == EMPTY:
                    perimeter.add((nr, nc))

        for r, c in perimeter:
            empty = 0
            filled = []
            for dr, dc in ORTHOGONAL:
                nr, nc = r + dr, c + dc
                if not _in_bounds(hypo, nr, nc):
                    filled.append(False)
                    continue
                is_empty = hypo[nr, nc] == EMPTY
                empty += is_empty
                filled.append(not is_empty)
            north, south, west, east = filled
            if empty < 2 or (north and south) or (east and west):
                return False
        return True

    # 5. no new tile touches (8-way) a tile of another category
    def _adjacency_ok(self, cells, new_cells, category) -> bool:
        for r, c in new_cells:
            for dr, dc in EIGHT_NEIGHBORS:
                nr, nc = r + dr, c + dc
                if not _in_bounds(cells, nr, nc):
                    continue
                neighbor = cells[nr, nc]
                if neighbor != EMPTY and neighbor != category:
                    return False
        return True

    # 6. the structure(s) containing the new tiles stay within the category cap
    def _size_cap_ok(self, hypo, new_cells, category) -> bool:
        mask = hypo == category
        checked = set()
        for r, c in new_cells:
            if (r, c) in checked:
                continue
            members = component_cells(mask, r, c)
            checked.update(members)
            if exceeds_cap(category, *structure_dims(members)):
                return False
        return True

    # 7. mid band and backside each stay at or under half filled
    def _half_balance_ok(self, hypo) -> bool:
        mid_cov, back_cov = band_coverage(hypo)
        return mid_cov <= MAX_HALF_COVERAGE and back_cov <= MAX_HALF_COVERAGE

    # 8. empty cells outside a wall's inner corners keep two open sides (edges count as blocked)
    def _internal_corners_ok(self, template, anchor, hypo) -> bool:
        row, col = anchor
        for i, j in template.concave_cells():
            cr, cc = row + i, col + j
            for dr, dc in ORTHOGONAL:
                ar, ac = cr + dr, cc + dc
                if not _in_bounds(hypo, ar, ac) or hypo[ar, ac] != EMPTY:
                    continue
                open_sides = sum(
                    1 for er, ec in ORTHOGONAL
                    if _in_bounds(hypo, ar + er, ac + ec) and hypo[ar + er, ac + ec] == EMPTY
                )
                if open_sides < 2:
                    return False
        return True
