"""Grid cells holding stream points, and global per-cell statistics."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .models import CellIndex, Query, Tuple


@dataclass(eq=False)
class Cell:
    """A grid cell with the points it holds and, for sub-dimensional
    grids, child cells keyed by full-dimensional index."""

    cell_idx: CellIndex = ()
    center: list[float] = field(default_factory=list)
    child_cells: dict[CellIndex, Cell] = field(default_factory=dict)
    tuples: set[Tuple] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.cell_idx = tuple(self.cell_idx)

    @classmethod
    def from_bounds(
        cls,
        cell_idx: Sequence[int],
        dim_length: Sequence[float],
        min_values: Sequence[float],
    ) -> Cell:
        """Build a cell whose center is derived from the grid geometry."""
        center = [
            low + idx * length + length / 2.0
            for idx, length, low in zip(cell_idx, dim_length, min_values)
        ]
        return cls(tuple(cell_idx), center)

    def num_tuples(self) -> int:
        """Number of points in the cell."""
        return len(self.tuples)

    def add_tuple(self, t: Tuple) -> None:
        """Add a point to the cell."""
        self.tuples.add(t)

    def add_tuple_sub_dim(
        self,
        t: Tuple,
        dim_length: Sequence[float],
        min_values: Sequence[float],
    ) -> None:
        """Add a point to the cell and to the child cell of its full-dimensional index."""
        self.tuples.add(t)
        child = self.child_cells.get(t.full_dim_cell_idx)
        if child is None:
            child = Cell.from_bounds(t.full_dim_cell_idx, dim_length, min_values)
            self.child_cells[child.cell_idx] = child
        child.add_tuple(t)


@dataclass(eq=False)
class GlobalCell:
    """Window-wide statistics of a cell: cardinalities and neighbouring cells."""

    cell_idx: CellIndex = ()
    neigh_cell_map: dict[CellIndex, float] = field(default_factory=dict)
    last_updated: bool = False
    card: int = 0
    card_per_slide: dict[int, int] = field(default_factory=dict)
    indirect_outlier_cell_query_ids: list[int] = field(default_factory=list)
    nd_queries: list[Query] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.cell_idx = tuple(self.cell_idx)

    def card_total(self, first_slide_id: int) -> int:
        """Points in the cell from slide ``first_slide_id`` onwards."""
        return sum(
            count
            for slide_id, count in self.card_per_slide.items()
            if slide_id >= first_slide_id
        )

    def thred_neigh_cells_out(self, dist_thred: float) -> list[CellIndex]:
        """Neighbouring cells strictly closer than ``dist_thred``."""
        return [idx for idx, dist in self.neigh_cell_map.items() if dist < dist_thred]

    def thred_neigh_cells_in(self, dist_thred: float) -> list[CellIndex]:
        """Neighbouring cells at most ``dist_thred`` away."""
        return [idx for idx, dist in self.neigh_cell_map.items() if dist <= dist_thred]