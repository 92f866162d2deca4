# mapgen/symmetry.py
import logging
from collections import namedtuple
from typing import List, Set, Tuple

from mapgen.grid import EMPTY, Grid

logger = logging.getLogger(__name__)

MirrorFlags = namedtuple("MirrorFlags", "vertical horizontal diagonal", defaults=(False, False, False))


def mirror_anchors(rows, cols, template_height, template_width, row, col, flags: MirrorFlags) -> List[Tuple[int, int]]:
    """
    Anchors of every reflected copy of a template placed at (row, col), original
    first. Reflections whose footprint leaves the grid are dropped; duplicates
    (a centred symmetric template mirrors onto itself) are removed.
    """
    candidates = [(row, col)]
    mirror_row = rows - row - template_height
    mirror_col = cols - col - template_width
    if flags.vertical:
        candidates.append((row, mirror_col))
    if flags.horizontal:
        candidates.append((mirror_row, col))
    if flags.diagonal:
        # point reflection through the grid centre
        center_row, center_col = (rows - 1) / 2, (cols - 1) / 2
        candidates.append((round(2 * center_row - row - template_height + 1),
                           round(2 * center_col - col - template_width + 1)))
    if flags.vertical and flags.horizontal:
        candidates.append((mirror_row, mirror_col))

    anchors, seen = [], set()
    for r, c in candidates:
        if (r, c) in seen:
            continue
        if 0 <= r and r + template_height <= rows and 0 <= c and c + template_width <= cols:
            seen.add((r, c))
            anchors.append((r, c))
    return anchors


def mirror_orbit(rows, cols, row, col, flags: MirrorFlags) -> Set[Tuple[int, int]]:
    """All cells a cell is tied to under the active mirrors (closure of the reflections)."""
    orbit = {(row, col)}
    frontier = [(row, col)]
    while frontier:
        r, c = frontier.pop()
        images = []
        if flags.vertical:
            images.append((r, cols - 1 - c))
        if flags.horizontal:
            images.append((rows - 1 - r, c))
        if flags.diagonal:
            images.append((rows - 1 - r, cols - 1 - c))
        for image in images:
            if image not in orbit:
                orbit.add(image)
                frontier.append(image)
    return orbit


class SymmetryEnforcer:
    """Nulls out every cell pair that breaks an active mirror."""

    def __init__(self, flags: MirrorFlags):
        self.flags = flags

    def _pairs(self, rows, cols):
        if self.flags.vertical:
            for r in range(rows):
                for c in range(cols // 2):
                    yield (r, c), (r, cols - 1 - c)
        if self.flags.horizontal:
            for r in range(rows // 2):
                for c in range(cols):
                    yield (r, c), (rows - 1 - r, c)
        if self.flags.diagonal:
            for r in range(rows):
                for c in range(cols):
                    mr, mc = rows - 1 - r, cols - 1 - c
                    if (r, c) < (mr, mc):
                        yield (r, c), (mr, mc)

    def enforce(self, grid: Grid) -> int:
        """Returns the number of mismatched pairs that were cleared."""
        violations = 0
        cells = grid.cells
        # clearing a pair can break one already checked under another mirror
        changed = True
        while changed:
            changed = False
            for a, b in self._pairs(grid.rows, grid.cols):
                if cells[a] != cells[b]:
                    cells[a] = EMPTY
                    cells[b] = EMPTY
                    violations += 1
                    changed = True
        if violations:
            logger.info("Symmetry enforcement cleared %d mismatched pairs", violations)
        return violations

    def count_asymmetries(self, grid: Grid) -> int:
        cells = grid.cells
        return sum(1 for a, b in self._pairs(grid.rows, grid.cols) if cells[a] != cells[b])
