# mapgen/grid.py
from collections import namedtuple
from enum import IntEnum
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy import ndimage


# === Terrain ===
class TerrainCategory(IntEnum):
    EMPTY = 0
    WALL = 1
    WATER = 2
    GRASS = 3
    OUT_OF_GAME = 4


EMPTY = TerrainCategory.EMPTY
WALL = TerrainCategory.WALL
WATER = TerrainCategory.WATER
GRASS = TerrainCategory.GRASS
OUT_OF_GAME = TerrainCategory.OUT_OF_GAME

ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))  # N, S, W, E
DIAGONAL = ((-1, -1), (-1, 1), (1, -1), (1, 1))
EIGHT_NEIGHBORS = ORTHOGONAL + DIAGONAL

MAP_SIZES = {"3v3": (33, 21), "showdown": (60, 60)}

# 4-connectivity kernel for ndimage.label
FOUR_CONNECTED = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=bool)


def mid_band(rows: int) -> Tuple[int, int]:
    """Inclusive row range of the central combat strip (11-21 on a 33-row map)."""
    third = rows // 3
    return third, rows - third - 1


class Grid:
    """Exclusively owned, mutable rows x cols array of terrain codes."""

    def __init__(self, rows, cols, cells=None):
        self.rows, self.cols = rows, cols
        if cells is None:
            cells = np.zeros((rows, cols), dtype=np.int8)
        self.cells = cells

    @classmethod
    def from_list(cls, tiles: List[List[int]]) -> "Grid":
        cells = np.array(tiles, dtype=np.int8)
        if cells.ndim != 2:
            raise ValueError("Grid rows must all have the same length.")
        return cls(cells.shape[0], cells.shape[1], cells)

    @property
    def shape(self):
        return self.cells.shape

    @property
    def total(self):
        return self.rows * self.cols

    def in_bounds(self, row, col) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def __getitem__(self, pos) -> TerrainCategory:
        return TerrainCategory(int(self.cells[pos]))

    def __setitem__(self, pos, category):
        self.cells[pos] = int(category)

    def copy(self) -> "Grid":
        return Grid(self.rows, self.cols, self.cells.copy())

    def filled_mask(self) -> np.ndarray:
        return self.cells != EMPTY

    def count(self, category) -> int:
        return int(np.count_nonzero(self.cells == category))

    def to_list(self) -> List[List[int]]:
        return self.cells.astype(int).tolist()


# === Connectivity probe ===
class Structure(namedtuple("Structure", "category cells")):
    """A maximal 4-connected run of same-category cells (cells sorted row-major)."""

    @property
    def size(self):
        return len(self.cells)

    @property
    def bounds(self):
        rows = [r for r, _ in self.cells]
        cols = [c for _, c in self.cells]
        return min(rows), min(cols), max(rows), max(cols)

    @property
    def height(self):
        min_r, _, max_r, _ = self.bounds
        return max_r - min_r + 1

    @property
    def width(self):
        _, min_c, _, max_c = self.bounds
        return max_c - min_c + 1

    @property
    def length(self):
        return max(self.height, self.width)

    @property
    def thickness(self):
        return min(self.height, self.width)


def label_components(mask: np.ndarray):
    """Label 4-connected components of a boolean mask. Returns (labels, count)."""
    return ndimage.label(mask, structure=FOUR_CONNECTED)


def component_cells(mask: np.ndarray, row: int, col: int) -> List[Tuple[int, int]]:
    """Cells of the component of `mask` containing (row, col); empty if the cell is not in the mask."""
    rows, cols = mask.shape
    if not (0 <= row < rows and 0 <= col < cols) or not mask[row, col]:
        return []
    labels, _ = label_components(mask)
    return [(int(r), int(c)) for r, c in np.argwhere(labels == labels[row, col])]


def probe(cells: np.ndarray, row: int, col: int,
          predicate: Optional[Callable[[np.ndarray], np.ndarray]] = None) -> Optional[Structure]:
    """
    Flood-fill from (row, col). `predicate` maps the code array to a boolean mask;
    by default the component is the run of cells sharing the start cell's category.
    """
    if not (0 <= row < cells.shape[0] and 0 <= col < cells.shape[1]):
        return None
    category = TerrainCategory(int(cells[row, col]))
    mask = predicate(cells) if predicate else cells == category
    members = component_cells(mask, row, col)
    if not members:
        return None
    return Structure(category, members)


def find_structures(cells: np.ndarray, category) -> List[Structure]:
    labels, count = label_components(cells == category)
    if not count:
        return []
    buckets = [[] for _ in range(count)]
    for r, c in np.argwhere(labels > 0):
        buckets[labels[r, c] - 1].append((int(r), int(c)))
    category = TerrainCategory(category)
    return [Structure(category, members) for members in buckets]


def neighbor_counts(mask: np.ndarray, edge: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """Per-cell count of True orthogonal and diagonal neighbours; out of bounds reads as `edge`."""
    ortho = sum(shifted_mask(mask, dr, dc, edge).astype(np.int8) for dr, dc in ORTHOGONAL)
    diag = sum(shifted_mask(mask, dr, dc, edge).astype(np.int8) for dr, dc in DIAGONAL)
    return ortho, diag


def shifted_mask(mask: np.ndarray, dr: int, dc: int, edge: bool = False) -> np.ndarray:
    """mask value of the neighbour at offset (dr, dc) for every cell."""
    rows, cols = mask.shape
    padded = np.pad(mask, 1, constant_values=edge)
    return padded[1 + dr:1 + dr + rows, 1 + dc:1 + dc + cols]
