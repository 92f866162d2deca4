import numpy as np

from mapgen.grid import WALL, Grid
from mapgen.symmetry import MirrorFlags, SymmetryEnforcer, mirror_anchors, mirror_orbit


def test_no_flags_keeps_only_original():
    assert mirror_anchors(33, 21, 2, 3, 5, 2, MirrorFlags()) == [(5, 2)]


def test_vertical_reflection_uses_template_width():
    assert mirror_anchors(33, 21, 2, 3, 5, 2, MirrorFlags(vertical=True)) == [(5, 2), (5, 16)]


def test_horizontal_reflection_uses_template_height():
    assert mirror_anchors(33, 21, 2, 3, 5, 2, MirrorFlags(horizontal=True)) == [(5, 2), (26, 2)]


def test_vertical_and_horizontal_add_the_corner_copy():
    anchors = mirror_anchors(33, 21, 1, 1, 0, 0, MirrorFlags(vertical=True, horizontal=True))
    assert sorted(anchors) == [(0, 0), (0, 20), (32, 0), (32, 20)]


def test_diagonal_is_a_point_reflection():
    assert mirror_anchors(33, 21, 1, 1, 0, 0, MirrorFlags(diagonal=True)) == [(0, 0), (32, 20)]
    assert mirror_anchors(33, 21, 2, 3, 4, 1, MirrorFlags(diagonal=True)) == [(4, 1), (27, 17)]


def test_centred_template_mirrors_onto_itself():
    assert mirror_anchors(33, 21, 1, 3, 5, 9, MirrorFlags(vertical=True)) == [(5, 9)]


def test_orbit_is_closed_under_all_flags():
    orbit = mirror_orbit(4, 4, 0, 1, MirrorFlags(True, True, True))
    assert orbit == {(0, 1), (0, 2), (3, 1), (3, 2)}


def test_enforcer_clears_unmatched_pair():
    grid = Grid(5, 5)
    grid[1, 0] = WALL
    enforcer = SymmetryEnforcer(MirrorFlags(vertical=True))
    assert enforcer.enforce(grid) == 1
    assert grid.count(WALL) == 0


def test_enforcer_leaves_symmetric_grid_alone():
    grid = Grid(5, 5)
    grid[1, 0] = WALL
    grid[1, 4] = WALL
    assert SymmetryEnforcer(MirrorFlags(vertical=True)).enforce(grid) == 0
    assert grid.count(WALL) == 2


def test_enforcer_reaches_fixed_point_with_several_mirrors():
    grid = Grid(4, 4)
    for pos in ((0, 0), (0, 3), (3, 0)):
        grid[pos] = WALL
    enforcer = SymmetryEnforcer(MirrorFlags(vertical=True, horizontal=True))
    enforcer.enforce(grid)
    assert enforcer.count_asymmetries(grid) == 0
    assert not grid.cells.any()


def test_diagonal_enforcement():
    grid = Grid(3, 3)
    grid[0, 0] = WALL
    grid[2, 2] = WALL
    grid[0, 1] = WALL
    enforcer = SymmetryEnforcer(MirrorFlags(diagonal=True))
    assert enforcer.enforce(grid) == 1
    assert np.array_equal(grid.cells, np.rot90(grid.cells, 2))
    assert grid.count(WALL) == 2
