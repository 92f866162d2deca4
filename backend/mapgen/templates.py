# mapgen/templates.py
import random
from typing import Dict, Iterable, List, Optional

import numpy as np

from mapgen.grid import GRASS, WALL, WATER, TerrainCategory

# Weight multiplier for templates recently used in the same region
RECENT_TEMPLATE_WEIGHT_PENALTY = 0.3
TEMPLATE_HISTORY_SIZE = 5


class Template:
    """Immutable boolean shape plus its relative sampling weight."""

    def __init__(self, name, pattern, weight=1.0):
        if weight <= 0:
            raise ValueError(f"Template '{name}' must have a positive weight.")
        cells = np.array(pattern, dtype=bool)
        if cells.ndim != 2 or not cells.any():
            raise ValueError(f"Template '{name}' must be a non-empty 2D pattern.")
        cells.setflags(write=False)
        self.name, self.pattern, self.weight = name, cells, float(weight)

    @property
    def height(self):
        return self.pattern.shape[0]

    @property
    def width(self):
        return self.pattern.shape[1]

    @property
    def size(self):
        return int(np.count_nonzero(self.pattern))

    @property
    def cells(self):
        """Template-local (i, j) offsets of the "on" cells."""
        return [(int(i), int(j)) for i, j in np.argwhere(self.pattern)]

    def concave_cells(self):
        """On cells with an off orthogonal neighbour inside the template box (L/T/U inner corners)."""
        corners = []
        for i, j in self.cells:
            for di, dj in ((-1, 0), (1, 0), (0, -1), (0, 1)):
                ti, tj = i + di, j + dj
                if 0 <= ti < self.height and 0 <= tj < self.width and not self.pattern[ti, tj]:
                    corners.append((i, j))
                    break
        return corners

    def footprint(self, row, col):
        return [(row + i, col + j) for i, j in self.cells]

    def __repr__(self):
        return f"Template({self.name!r}, {self.height}x{self.width}, weight={self.weight})"


def _t(name, pattern, weight):
    return Template(name, pattern, weight)


# === Default catalog ===
WALL_TEMPLATES = [
    # Small
    _t("single", [[1]], 2),
    _t("bar_v2", [[1], [1]], 2),
    _t("bar_h2", [[1, 1]], 2),
    _t("bar_v3", [[1], [1], [1]], 2),
    _t("bar_h3", [[1, 1, 1]], 2),
    _t("block_2x2", [[1, 1], [1, 1]], 3),
    _t("L_small1", [[1, 1], [1, 0]], 2),
    _t("L_small2", [[1, 1], [0, 1]], 2),
    _t("L_small3", [[1, 0], [1, 1]], 2),
    _t("L_small4", [[0, 1], [1, 1]], 2),
    # Medium
    _t("block_2x3", [[1, 1], [1, 1], [1, 1]], 5),
    _t("block_3x2", [[1, 1, 1], [1, 1, 1]], 5),
    _t("block_3x3", [[1, 1, 1], [1, 1, 1], [1, 1, 1]], 4),
    _t("L_med1", [[1, 1, 1], [1, 0, 0]], 4),
    _t("L_med2", [[1, 1, 1], [0, 0, 1]], 4),
    _t("L_med3", [[1, 0, 0], [1, 1, 1]], 4),
    _t("L_med4", [[0, 0, 1], [1, 1, 1]], 4),
    _t("L_med5", [[1, 1, 0], [1, 0, 0], [1, 0, 0]], 3),
    _t("L_med6", [[0, 1, 1], [0, 0, 1], [0, 0, 1]], 3),
    _t("T_med1", [[1, 1, 1], [0, 1, 0]], 0.5),
    _t("T_med2", [[1, 0], [1, 1], [1, 0]], 0.5),
    _t("T_med3", [[0, 1, 0], [1, 1, 1]], 0.5),
    _t("T_med4", [[0, 1], [1, 1], [0, 1]], 0.5),
    _t("diag1", [[1, 0], [1, 1], [0, 1]], 3),
    _t("diag2", [[0, 1], [1, 1], [1, 0]], 3),
    _t("S_shape1", [[1, 1, 0], [0, 1, 1]], 3),
    _t("S_shape2", [[0, 1, 1], [1, 1, 0]], 3),
    _t("zigzag1", [[1, 0, 0], [1, 1, 0], [0, 1, 1]], 0.5),
    _t("zigzag2", [[0, 0, 1], [0, 1, 1], [1, 1, 0]], 0.5),
    _t("plus_med", [[0, 1, 0], [1, 1, 1], [0, 1, 0]], 0.5),
    _t("U_med1", [[1, 0, 1], [1, 1, 1]], 3),
    _t("U_med2", [[1, 1], [1, 0], [1, 1]], 3),
    # Large
    _t("bar_v4", [[1], [1], [1], [1]], 3),
    _t("bar_h4", [[1, 1, 1, 1]], 3),
    _t("bar_v5", [[1], [1], [1], [1], [1]], 3),
    _t("bar_h5", [[1, 1, 1, 1, 1]], 3),
    _t("bar_v6", [[1], [1], [1], [1], [1], [1]], 2),
    _t("bar_h6", [[1, 1, 1, 1, 1, 1]], 2),
    _t("block_2x4", [[1, 1], [1, 1], [1, 1], [1, 1]], 3),
    _t("block_3x4", [[1, 1, 1], [1, 1, 1], [1, 1, 1], [1, 1, 1]], 2),
    _t("L_big1", [[1, 1, 1, 1], [1, 0, 0, 0]], 2),
    _t("L_big2", [[1, 1, 1, 1], [0, 0, 0, 1]], 2),
    _t("L_big3", [[1, 0, 0], [1, 0, 0], [1, 1, 1]], 2),
    _t("L_big4", [[0, 0, 1], [0, 0, 1], [1, 1, 1]], 2),
    _t("box_hollow", [[1, 1, 1], [1, 0, 1], [1, 1, 1]], 2),
    _t("C_shape1", [[1, 1, 1], [1, 0, 0], [1, 1, 1]], 2),
    _t("C_shape2", [[1, 1, 1], [0, 0, 1], [1, 1, 1]], 2),
    _t("T_large", [[1, 1, 1, 1, 1], [0, 0, 1, 0, 0]], 0.5),
]

# Bushes are at least two tiles wide
GRASS_TEMPLATES = [
    _t("square_2x2", [[1, 1], [1, 1]], 0.3),
    _t("rect_2x3", [[1, 1], [1, 1], [1, 1]], 2),
    _t("rect_3x2", [[1, 1, 1], [1, 1, 1]], 2),
    _t("rect_2x4", [[1, 1], [1, 1], [1, 1], [1, 1]], 2),
    _t("rect_4x2", [[1, 1, 1, 1], [1, 1, 1, 1]], 2),
    _t("rect_3x3", [[1, 1, 1], [1, 1, 1], [1, 1, 1]], 1.5),
    _t("L_wide1", [[1, 1, 0], [1, 1, 0], [1, 1, 1]], 1.5),
    _t("L_wide2", [[0, 1, 1], [0, 1, 1], [1, 1, 1]], 1.5),
    _t("L_wide3", [[1, 1, 1], [1, 1, 0], [1, 1, 0]], 1.5),
    _t("L_wide4", [[1, 1, 1], [0, 1, 1], [0, 1, 1]], 1.5),
    _t("T_bush", [[0, 1, 1, 0], [1, 1, 1, 1], [0, 1, 1, 0]], 1),
    _t("rect_2x5", [[1, 1], [1, 1], [1, 1], [1, 1], [1, 1]], 1),
    _t("rect_3x4", [[1, 1, 1], [1, 1, 1], [1, 1, 1], [1, 1, 1]], 1),
]

WATER_TEMPLATES = [
    _t("pool_2x4", [[1, 1], [1, 1], [1, 1], [1, 1]], 1),
    _t("pool_3x3", [[1, 1, 1], [1, 1, 1], [1, 1, 1]], 1),
    _t("pool_4x2", [[1, 1, 1, 1], [1, 1, 1, 1]], 1),
    _t("river_2x5", [[1, 1], [1, 1], [1, 1], [1, 1], [1, 1]], 1),
    _t("river_3x4", [[1, 1, 1], [1, 1, 1], [1, 1, 1], [1, 1, 1]], 0.8),
    _t("L_water", [[1, 1, 1], [1, 1, 0], [1, 1, 0]], 0.5),
]


class TemplateCatalog:
    """Per-category template sets, sampled proportionally to weight."""

    def __init__(self, templates: Optional[Dict[TerrainCategory, Iterable[Template]]] = None):
        if templates is None:
            templates = {WALL: WALL_TEMPLATES, GRASS: GRASS_TEMPLATES, WATER: WATER_TEMPLATES}
        self._templates = {TerrainCategory(k): tuple(v) for k, v in templates.items()}

    def templates(self, category) -> List[Template]:
        return list(self._templates.get(TerrainCategory(category), ()))

    def has(self, category) -> bool:
        return bool(self._templates.get(TerrainCategory(category)))

    def choose(self, category, rng: random.Random, history: Optional[List[str]] = None) -> Template:
        """
        Weighted draw from the category's templates. Names found in `history`
        (recent picks for the same region) are down-weighted for variety, and
        the chosen name is appended to it.
        """
        pool = self._templates.get(TerrainCategory(category))
        if not pool:
            raise KeyError(f"No templates registered for {TerrainCategory(category).name}")
        recent = set(history or ())
        weights = [t.weight * (RECENT_TEMPLATE_WEIGHT_PENALTY if t.name in recent else 1.0) for t in pool]
        chosen = rng.choices(pool, weights=weights, k=1)[0]
        if history is not None:
            history.append(chosen.name)
            if len(history) > TEMPLATE_HISTORY_SIZE:
                del history[0]
        return chosen
