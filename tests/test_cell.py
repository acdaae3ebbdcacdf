import pytest

from mdual.cell import Cell, GlobalCell
from mdual.models import Tuple


def _point(pid, full_idx):
    t = Tuple(pid, 0, [0.0, 0.0])
    t.full_dim_cell_idx = full_idx
    return t


def test_from_bounds_center_single_dim():
    cell = Cell.from_bounds((1,), [2.0], [0.0])
    assert cell.cell_idx == (1,)
    assert cell.center == [3.0]


@pytest.mark.parametrize(
    "idx, lengths, mins",
    [
        ((0, 0), [1.0, 1.0], [0.0, 0.0]),
        ((3, 7), [0.5, 2.5], [-4.0, 10.0]),
        ((2, 0, 5), [1.2, 0.3, 7.0], [1.0, -1.0, 0.0]),
    ],
)
def test_from_bounds_center_lies_inside_cell(idx, lengths, mins):
    cell = Cell.from_bounds(idx, lengths, mins)
    assert len(cell.center) == len(idx)
    for c, i, length, low in zip(cell.center, idx, lengths, mins):
        assert low + i * length < c < low + (i + 1) * length


def test_cell_index_normalised_to_tuple():
    cell = Cell([4, 5])
    assert cell.cell_idx == (4, 5)
    assert cell.center == []
    assert cell.num_tuples() == 0


def test_add_tuple_counts_each_point_once():
    cell = Cell((0,))
    t = _point(1, (0, 0))
    cell.add_tuple(t)
    cell.add_tuple(t)
    cell.add_tuple(_point(2, (0, 0)))
    assert cell.num_tuples() == 2


def test_add_tuple_sub_dim_groups_children_by_full_index():
    cell = Cell((0,))
    a = _point(1, (0, 1))
    b = _point(2, (0, 1))
    c = _point(3, (1, 1))
    for t in (a, b, c):
        cell.add_tuple_sub_dim(t, [1.0, 1.0], [0.0, 0.0])
    assert cell.num_tuples() == 3
    assert set(cell.child_cells) == {(0, 1), (1, 1)}
    assert cell.child_cells[(0, 1)].tuples == {a, b}
    assert cell.child_cells[(1, 1)].tuples == {c}
    assert cell.child_cells[(1, 1)].center == Cell.from_bounds(
        (1, 1), [1.0, 1.0], [0.0, 0.0]
    ).center


def test_card_total_filters_by_first_slide():
    g = GlobalCell((0, 0))
    g.card_per_slide = {1: 3, 2: 4, 3: 5}
    assert g.card_total(4) == 0
    assert g.card_total(3) == 5
    assert g.card_total(2) == g.card_total(3) + 4
    assert g.card_total(1) == g.card_total(2) + 3
    assert g.card_total(-10) == g.card_total(1)


def test_global_cell_defaults():
    g = GlobalCell([1, 2])
    assert g.cell_idx == (1, 2)
    assert g.card == 0
    assert g.last_updated is False
    assert g.neigh_cell_map == {}
    assert g.card_total(0) == 0


def test_thred_neigh_cells_out_is_strict():
    g = GlobalCell((0,))
    g.neigh_cell_map = {(1,): 1.0, (2,): 2.0, (3,): 3.0}
    assert g.thred_neigh_cells_out(2.0) == [(1,)]


def test_thred_neigh_cells_in_includes_boundary():
    g = GlobalCell((0,))
    g.neigh_cell_map = {(1,): 1.0, (2,): 2.0, (3,): 3.0}
    assert sorted(g.thred_neigh_cells_in(2.0)) == [(1,), (2,)]
    assert set(g.thred_neigh_cells_out(2.0)) <= set(g.thred_neigh_cells_in(2.0))