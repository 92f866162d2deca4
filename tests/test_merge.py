from mapgen.grid import GRASS, Grid, find_structures
from mapgen.merge import StructureMerger, min_manhattan


def _bush(grid, top, left, height, width):
    grid.cells[top:top + height, left:left + width] = GRASS


def test_min_manhattan():
    assert min_manhattan({(0, 0), (0, 1)}, {(0, 3), (5, 5)}) == 2


def test_close_bushes_are_bridged():
    grid = Grid(10, 10)
    _bush(grid, 2, 2, 2, 2)
    _bush(grid, 2, 5, 2, 2)
    assert StructureMerger().merge(grid) == 1
    structures = find_structures(grid.cells, GRASS)
    assert len(structures) == 1
    assert structures[0].size == 10


def test_distant_bushes_stay_apart():
    grid = Grid(10, 10)
    _bush(grid, 2, 2, 2, 2)
    _bush(grid, 2, 7, 2, 2)
    assert StructureMerger().merge(grid) == 0
    assert len(find_structures(grid.cells, GRASS)) == 2


def test_thin_merge_is_refused():
    grid = Grid(10, 10)
    grid[2, 2] = GRASS
    grid[2, 4] = GRASS
    assert StructureMerger().merge(grid) == 0
    assert grid.count(GRASS) == 2


def test_oversized_merge_is_refused():
    grid = Grid(20, 20)
    _bush(grid, 0, 0, 4, 5)
    _bush(grid, 0, 6, 4, 5)
    # 20 + 20 + bridge would pass the 35 tile limit
    assert StructureMerger().merge(grid) == 0
    assert grid.count(GRASS) == 40


def test_long_merge_is_refused():
    grid = Grid(20, 20)
    _bush(grid, 0, 0, 2, 6)
    _bush(grid, 0, 7, 2, 6)
    assert StructureMerger().merge(grid) == 0
