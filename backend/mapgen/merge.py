# mapgen/merge.py
import itertools
import logging
from typing import List, Set, Tuple

import numpy as np

from mapgen.grid import EMPTY, GRASS, ORTHOGONAL, Grid, find_structures

logger = logging.getLogger(__name__)

MERGE_MAX_DISTANCE = 2
MERGE_MAX_SIZE = 35
MERGE_MIN_THICKNESS = 2
MERGE_MAX_LENGTH = 12


def min_manhattan(a: Set[Tuple[int, int]], b: Set[Tuple[int, int]]) -> int:
    pa, pb = np.array(sorted(a)), np.array(sorted(b))
    return int(np.abs(pa[:, None, :] - pb[None, :, :]).sum(axis=2).min())


def _bounds(cells):
    rows = [r for r, _ in cells]
    cols = [c for _, c in cells]
    return min(rows), min(cols), max(rows), max(cols)


class StructureMerger:
    """Bridges nearby same-category structures (bushes) into larger clumps."""

    def __init__(self, category=GRASS):
        self.category = category

    def _bridge_cells(self, grid: Grid, a, b, box) -> List[Tuple[int, int]]:
        top, left, bottom, right = box
        out = []
        for row in range(top, bottom + 1):
            for col in range(left, right + 1):
                if grid.cells[row, col] != EMPTY:
                    continue
                if any((row + dr, col + dc) in a or (row + dr, col + dc) in b for dr, dc in ORTHOGONAL):
                    out.append((row, col))
        return out

    def merge(self, grid: Grid) -> int:
        """One pass over every structure pair; returns the number of merges made."""
        structures = [set(s.cells) for s in find_structures(grid.cells, self.category)]
        logger.info("Merging: found %d %s structures", len(structures), self.category.name.lower())
        merges = 0
        for i, j in itertools.combinations(range(len(structures)), 2):
            a, b = structures[i], structures[j]
            distance = min_manhattan(a, b)
            if not 0 < distance <= MERGE_MAX_DISTANCE:
                continue

            a_top, a_left, a_bottom, a_right = _bounds(a)
            b_top, b_left, b_bottom, b_right = _bounds(b)
            box = (min(a_top, b_top), min(a_left, b_left), max(a_bottom, b_bottom), max(a_right, b_right))
            height, width = box[2] - box[0] + 1, box[3] - box[1] + 1
            bridge = self._bridge_cells(grid, a, b, box)
            merged_size = len(a) + len(b) + len(bridge)
            if merged_size > MERGE_MAX_SIZE or min(height, width) < MERGE_MIN_THICKNESS \
                    or max(height, width) > MERGE_MAX_LENGTH or not bridge:
                continue

            for r, c in bridge:
                grid.cells[r, c] = self.category
            # later pairs see the bridged clump as part of b
            top, left, bottom, right = box
            for r, c in np.argwhere(grid.cells[top:bottom + 1, left:right + 1] == self.category):
                b.add((int(r) + top, int(c) + left))
            merges += 1
            logger.debug("Merged structures near (%d,%d) and (%d,%d): +%d tiles",
                         a_top, a_left, b_top, b_left, len(bridge))
        logger.info("Merged %d structure pairs", merges)
        return merges
