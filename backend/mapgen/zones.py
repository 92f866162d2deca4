# mapgen/zones.py
import random
from enum import Enum
from typing import List, Optional

import numpy as np


class ZoneKind(str, Enum):
    OPEN = "open"
    TIGHT = "tight"
    NORMAL = "normal"


# (count, width range, height range, target coverage range, min gap)
ZONE_SHAPES = {
    ZoneKind.OPEN: (3, (5, 8), (7, 10), (0.15, 0.25), 4),
    ZoneKind.TIGHT: (2, (4, 6), (5, 8), (0.55, 0.70), 2),
}
NORMAL_COVERAGE = (0.35, 0.45)
NORMAL_MIN_GAP = 2


class Zone:
    """Planning rectangle (inclusive bounds); the NORMAL zone has no bounds."""

    def __init__(self, kind, target_coverage, min_gap, top=None, left=None, bottom=None, right=None):
        self.kind, self.target_coverage, self.min_gap = kind, target_coverage, min_gap
        self.top, self.left, self.bottom, self.right = top, left, bottom, right

    def contains(self, row, col) -> bool:
        if self.kind == ZoneKind.NORMAL:
            return False
        return self.top <= row <= self.bottom and self.left <= col <= self.right

    def to_dict(self):
        data = {"kind": self.kind.value, "targetCoverage": round(self.target_coverage, 4), "minGap": self.min_gap}
        if self.kind != ZoneKind.NORMAL:
            data.update(top=self.top, left=self.left, bottom=self.bottom, right=self.right)
        return data

    def __repr__(self):
        if self.kind == ZoneKind.NORMAL:
            return f"Zone(normal, target={self.target_coverage:.2f})"
        return (f"Zone({self.kind.value}, rows {self.top}-{self.bottom}, cols {self.left}-{self.right}, "
                f"target={self.target_coverage:.2f})")


class ZonePlan:
    def __init__(self, rows, cols, zones: List[Zone], normal: Zone):
        self.rows, self.cols, self.zones, self.normal = rows, cols, zones, normal
        claimed = np.zeros((rows, cols), dtype=bool)
        for z in zones:
            claimed[z.top:z.bottom + 1, z.left:z.right + 1] = True
        self._normal_mask = ~claimed

    def zone_at(self, row, col) -> Zone:
        # Zones may overlap; the first one listed wins
        for z in self.zones:
            if z.contains(row, col):
                return z
        return self.normal

    def coverage(self, zone: Zone, cells: np.ndarray) -> float:
        if zone.kind == ZoneKind.NORMAL:
            total = int(np.count_nonzero(self._normal_mask))
            filled = int(np.count_nonzero(cells[self._normal_mask]))
        else:
            region = cells[zone.top:zone.bottom + 1, zone.left:zone.right + 1]
            total, filled = region.size, int(np.count_nonzero(region))
        return filled / total if total else 0.0

    def all_zones(self) -> List[Zone]:
        return self.zones + [self.normal]


class ZonePlanner:
    """Carves open (sparse) and tight (dense) rectangles; the rest of the map is normal."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def _carve(self, kind, rows, cols) -> List[Zone]:
        count, (w_lo, w_hi), (h_lo, h_hi), (c_lo, c_hi), min_gap = ZONE_SHAPES[kind]
        out = []
        for _ in range(count):
            width = min(self.rng.randint(w_lo, w_hi), cols)
            height = min(self.rng.randint(h_lo, h_hi), rows)
            top = self.rng.randint(0, rows - height)
            left = self.rng.randint(0, cols - width)
            out.append(Zone(kind, self.rng.uniform(c_lo, c_hi), min_gap,
                            top, left, top + height - 1, left + width - 1))
        return out

    def plan(self, rows, cols) -> ZonePlan:
        zones = self._carve(ZoneKind.OPEN, rows, cols) + self._carve(ZoneKind.TIGHT, rows, cols)
        normal = Zone(ZoneKind.NORMAL, self.rng.uniform(*NORMAL_COVERAGE), NORMAL_MIN_GAP)
        return ZonePlan(rows, cols, zones, normal)
