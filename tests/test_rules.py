from mapgen.grid import GRASS, OUT_OF_GAME, WALL, WATER
from mapgen.rules import (ValidityChecker, band_coverage, exceeds_cap, section_coverage,
                          section_edges, structure_dims)
from mapgen.templates import Template


def test_section_edges_split_in_thirds():
    assert section_edges(33) == [0, 11, 22, 33]
    assert section_edges(21) == [0, 7, 14, 21]


def test_band_coverage(cells):
    cells[11, :] = WALL
    mid, back = band_coverage(cells)
    assert mid == 21 / (11 * 21)
    assert back == 0.0


def test_section_coverage(cells):
    cells[0:11, 0:7] = WALL
    assert section_coverage(cells, 5, 3) == 1.0
    assert section_coverage(cells, 20, 10) == 0.0


def test_structure_dims():
    assert structure_dims([(0, 0), (0, 1), (0, 2), (1, 0)]) == (4, 3, 2)


def test_exceeds_cap():
    assert not exceeds_cap(WALL, 20, 8, 3)
    assert exceeds_cap(WALL, 21, 8, 3)
    assert exceeds_cap(WATER, 12, 9, 2)
    assert not exceeds_cap(GRASS, 25, 10, 4)


class TestValidityChecker:
    def setup_method(self):
        self.checker = ValidityChecker()

    def _check(self, template, anchor, cells, category=WALL):
        ok = self.checker.is_valid(template, anchor, cells, category)
        return ok, self.checker.last_reason

    def test_open_placement_is_valid(self, cells, single):
        assert self._check(single, (15, 10), cells) == (True, None)

    def test_out_of_bounds(self, cells, single):
        assert self._check(single, (0, 21), cells) == (False, "out_of_bounds")
        assert self._check(single, (-1, 0), cells) == (False, "out_of_bounds")

    def test_overlap(self, cells, single):
        cells[15, 10] = GRASS
        assert self._check(single, (15, 10), cells, GRASS) == (False, "overlap")

    def test_trapped_space(self, cells, single):
        cells[16, 9] = WALL
        cells[16, 11] = WALL
        # (16, 10) would be boxed in on three sides
        assert self._check(single, (15, 10), cells) == (False, "trapped_space")

    def test_grid_edge_is_not_a_wall(self, cells, single):
        # (0, 5) keeps its west and east sides open; the edge above it is not a blocker
        assert self._check(single, (1, 5), cells) == (True, None)

    def test_corner_cell_with_one_open_side(self, cells, single):
        assert self._check(single, (0, 1), cells) == (False, "trapped_space")

    def test_cross_category_diagonal_contact(self, cells, single):
        cells[15, 10] = WATER
        assert self._check(single, (14, 11), cells) == (False, "cross_category")

    def test_same_category_contact_is_allowed(self, cells, single):
        cells[15, 10] = WALL
        assert self._check(single, (15, 11), cells) == (True, None)

    def test_size_cap_on_joined_structure(self, cells):
        cells[15, 2:10] = WALL
        bar = Template("bar_h2", [[1, 1]], 1)
        assert self._check(bar, (15, 10), cells) == (False, "size_cap")

    def test_size_cap_on_lone_template(self, cells):
        long_bar = Template("bar_h9", [[1] * 9], 1)
        assert self._check(long_bar, (15, 5), cells) == (False, "size_cap")

    def test_half_balance(self, cells, single):
        cells[0:11, :] = GRASS  # top backside: exactly half of all backside cells
        assert self._check(single, (27, 10), cells) == (False, "half_balance")

    def test_section_density(self, cells, single):
        cells[0:7, 0:7] = OUT_OF_GAME  # 49 of 77 cells in the top-left section
        assert self._check(single, (9, 3), cells) == (False, "section_density")

    def test_internal_corner_counts_edges_as_blocked(self, cells):
        corner = Template("L", [[1, 1], [1, 0]], 1)
        hypo = cells.copy()
        for r, c in corner.footprint(0, 19):
            hypo[r, c] = WALL
        assert not self.checker._internal_corners_ok(corner, (0, 19), hypo)
        assert self.checker._internal_corners_ok(corner, (10, 10), cells)
