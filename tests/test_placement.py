import random

import pytest

from mapgen.grid import GRASS, WALL, WATER, Grid, find_structures, mid_band
from mapgen.placement import (CHOKEPOINT_WALL, PlacementEngine, PlacementRequest, target_tiles)
from mapgen.scanner import GlobalInvariantScanner
from mapgen.symmetry import MirrorFlags
from mapgen.templates import Template, TemplateCatalog
from mapgen.zones import ZonePlanner

POOL = Template("pool_3x3", [[1, 1, 1], [1, 1, 1], [1, 1, 1]], 1)


def _engine(flags=MirrorFlags(), seed=5, grid=None, max_attempts=5000, catalog=None):
    rng = random.Random(seed)
    grid = grid or Grid(33, 21)
    zones = ZonePlanner(rng).plan(grid.rows, grid.cols)
    return PlacementEngine(grid, zones, catalog or TemplateCatalog(), flags, rng, max_attempts=max_attempts)


def test_target_tiles():
    assert target_tiles(WALL, 10, 693) == 69
    assert target_tiles(WATER, 5, 693) == 34
    assert target_tiles(WATER, 50, 693) == 69  # capped at 10%
    assert target_tiles(GRASS, 0, 693) == 0


class TestTryPlace:
    def test_places_and_records(self, single):
        engine = _engine()
        record = engine.try_place(single, (15, 10), WALL)
        assert record.tiles_placed == 1
        assert record.anchor == (15, 10) and record.template == "single"
        assert engine.grid[15, 10] == WALL
        assert engine.records == [record]

    def test_mirrored_copies_are_committed_together(self, single):
        engine = _engine(MirrorFlags(vertical=True))
        record = engine.try_place(single, (5, 2), WALL)
        assert record.tiles_placed == 2
        assert engine.grid[5, 2] == WALL and engine.grid[5, 18] == WALL

    def test_rejection_leaves_grid_untouched(self, single):
        engine = _engine()
        engine.grid[15, 10] = WATER
        before = engine.grid.cells.copy()
        assert engine.try_place(single, (14, 11), WALL) is None
        assert (engine.grid.cells == before).all()
        assert engine.records == []

    def test_mirror_copy_failure_rejects_original(self, single):
        engine = _engine(MirrorFlags(vertical=True))
        engine.grid[5, 18] = GRASS
        assert engine.try_place(single, (5, 2), WALL) is None
        assert engine.grid[5, 2] == 0

    def test_existing_traps_do_not_block_unrelated_commits(self, single):
        grid = Grid(33, 21)
        for pos in ((1, 2), (3, 2), (2, 1), (2, 3)):
            grid[pos] = WALL
        engine = _engine(grid=grid)
        assert engine.try_place(single, (20, 15), WALL) is not None

    def test_water_must_stay_in_mid_band(self):
        engine = _engine()
        assert engine.try_place(POOL, (2, 8), WATER) is None
        assert engine.try_place(POOL, (12, 8), WATER) is not None

    def test_out_of_bounds_anchor(self, single):
        engine = _engine()
        assert engine.try_place(CHOKEPOINT_WALL, (31, 0), WALL) is None

    def test_refreshed_baseline_accepts_traps_made_outside_the_engine(self):
        engine = _engine()
        for pos in ((1, 2), (3, 2), (2, 1), (2, 3)):
            engine.grid[pos] = GRASS
        assert engine.try_place(POOL, (14, 9), WATER) is None
        assert engine._rejections["post_scan"] == 1
        engine.refresh_baseline()
        assert engine.try_place(POOL, (14, 9), WATER) is not None


class TestFill:
    def test_water_respects_band_and_budget(self):
        engine = _engine(seed=11)
        stats = engine.fill(WATER, 10)
        start, end = mid_band(33)
        structures = find_structures(engine.grid.cells, WATER)
        assert 1 <= len(structures) <= 2
        for s in structures:
            top, _, bottom, _ = s.bounds
            assert start <= top and bottom <= end
            assert s.size >= 8
        assert stats.placed == engine.grid.count(WATER)

    def test_water_survives_traps_left_by_earlier_phases(self):
        engine = _engine(seed=11)
        for pos in ((1, 2), (3, 2), (2, 1), (2, 3)):
            engine.grid[pos] = GRASS
        stats = engine.fill(WATER, 10)
        assert engine.grid.count(WATER) > 0
        assert stats.rejections["post_scan"] == 0

    def test_walls_never_leave_blocking_cells(self):
        engine = _engine(seed=3)
        engine.fill(WALL, 10)
        assert engine.grid.count(WALL) > 0
        assert GlobalInvariantScanner().blocking_cells(engine.grid.cells) == set()

    def test_zero_density_places_nothing(self):
        engine = _engine()
        stats = engine.fill(GRASS, 0)
        assert stats.target == 0 and stats.attempts == 0
        assert engine.grid.count(GRASS) == 0

    def test_attempt_budget_is_respected(self):
        engine = _engine(max_attempts=7)
        stats = engine.fill(GRASS, 100)
        assert stats.attempts <= 7
        assert stats.to_dict()["shortfall"] > 0


class TestPatterns:
    def test_forced_requests_go_first(self, single):
        engine = _engine()
        placed = engine.run_pattern_phase([PlacementRequest(single, (5, 2))], use_patterns=False)
        assert placed == 1
        assert engine.records[0].anchor == (5, 2)

    def test_structured_patterns_are_requests(self):
        engine = _engine(MirrorFlags(vertical=True), seed=8)
        for _ in range(10):
            for request in engine.structured_patterns():
                assert isinstance(request, PlacementRequest)
                assert isinstance(request.template, Template)

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_pattern_phase_keeps_grid_clean(self, seed):
        engine = _engine(MirrorFlags(vertical=True), seed=seed)
        engine.run_pattern_phase(use_patterns=True)
        assert GlobalInvariantScanner().blocking_cells(engine.grid.cells) == set()
