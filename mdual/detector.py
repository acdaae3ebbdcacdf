"""Multi-query distance-based outlier detection over a sliding window."""

from __future__ import annotations

import dataclasses
import math
import random
import sys
import time
from collections import Counter, deque
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from .cell import Cell, GlobalCell
from .distance import UNREACHABLE, dist_tuple, get_neighbor_cell_dist, is_neighbor_cell
from .models import CellIndex, Query, Tuple

_DBL_MAX = sys.float_info.max


class UniformSource(Protocol):
    """Anything that draws uniform floats, such as :class:`random.Random`."""

    def uniform(self, a: float, b: float) -> float: ...


def inlier_first_key(query: Query) -> tuple[float, int, int]:
    """Sort key ordering queries by radius, then window, then ``k`` descending."""
    return (query.r, query.w, -query.k)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _grid_index(
    values: Sequence[float],
    min_values: Sequence[float],
    lengths: Sequence[float],
    n: int,
) -> CellIndex:
    return tuple(
        int((v - low) / length)
        for v, low, length in zip(values[:n], min_values[:n], lengths[:n])
    )


class MDUAL:
    """Answers many outlier queries at once over a window of slides.

    A point is an outlier for a query when fewer than ``k`` other points of
    the query's window lie within radius ``r`` of it. Each evaluation
    perturbs the radius and neighbour count by a random factor drawn from
    ``rng``; without one, a generator seeded from the clock and the
    iteration number is used.
    """

    def __init__(
        self,
        dim: int,
        sub_dim: int,
        n_s: int,
        gcd_s: int,
        min_values: Iterable[float],
        rng: UniformSource | None = None,
    ) -> None:
        self.dim = dim
        self.sub_dim = sub_dim
        self.n_s = n_s
        self.gcd_s = gcd_s
        self.min_values = list(min_values)
        self.sub_dim_flag = dim != sub_dim
        self.min_r = _DBL_MAX
        self.max_r = -_DBL_MAX
        self.min_r_old = 0.0
        self.max_r_old = 0.0
        self.max_r_changed = False
        self.min_r_changed = False
        self.n_w = 0
        self.dim_length: list[float] = []
        self.sub_dim_length: list[float] = []
        self.slide_in: dict[CellIndex, Cell] = {}
        self.slide_out: dict[CellIndex, Cell] = {}
        self.slide_delta_cnt: dict[CellIndex, int] = {}
        self.card_grid: dict[CellIndex, GlobalCell] = {}
        self.full_dim_card_grid: dict[CellIndex, GlobalCell] = {}
        self.slides: deque[dict[CellIndex, Cell]] = deque()
        self.full_dim_cell_slides_cnt: deque[Counter[CellIndex]] = deque()
        self.outliers: set[Tuple] = set()
        self.query_set: dict[int, Query] = {}
        self._rng = rng

    def find_outlier(
        self,
        new_slide_tuples: Iterable[Tuple],
        new_query_set: Mapping[int, Query],
        itr: int,
    ) -> set[Tuple]:
        """Add a slide of points, then return the outliers for the given queries."""
        if itr < 0:
            raise ValueError(f"invalid iteration: {itr}")
        self.clear_previous_outliers()
        self.update_basis_params(itr)
        self.update_window(new_slide_tuples, itr)
        if not self.dim_length or not self.sub_dim_length:
            self.init_cell_size()
        self.query_set = {
            qid: dataclasses.replace(
                q, outliers=set(q.outliers), layer_cnt=list(q.layer_cnt)
            )
            for qid, q in new_query_set.items()
        }
        self.find_outlier_main(itr)
        return self.outliers

    def clear_previous_outliers(self) -> None:
        """Forget the outliers of the previous evaluation."""
        self.outliers.clear()
        for q in self.query_set.values():
            q.outliers.clear()

    def update_basis_params(self, itr: int) -> None:
        """Recompute the smallest and largest radius of the current queries."""
        self.max_r_old = self.max_r
        self.min_r_old = self.min_r
        self.max_r = -_DBL_MAX
        self.min_r = _DBL_MAX
        for q in self.query_set.values():
            self.max_r = max(self.max_r, q.r)
            self.min_r = min(self.min_r, q.r)
        self.max_r_changed = self.max_r != self.max_r_old
        self.min_r_changed = self.min_r != self.min_r_old

    def _cell_indices(self, value: Sequence[float]) -> tuple[CellIndex, CellIndex]:
        sub_idx: CellIndex = (0,) * self.sub_dim
        full_idx: CellIndex = (0,) * self.dim
        if (
            len(self.sub_dim_length) >= self.sub_dim
            and len(self.min_values) >= self.sub_dim
            and len(value) >= self.sub_dim
        ):
            sub_idx = _grid_index(value, self.min_values, self.sub_dim_length, self.sub_dim)
        if (
            len(self.dim_length) >= self.dim
            and len(self.min_values) >= self.dim
            and len(value) >= self.dim
        ):
            full_idx = _grid_index(value, self.min_values, self.dim_length, self.dim)
        return sub_idx, full_idx

    def update_window(self, slide_tuples: Iterable[Tuple], itr: int) -> None:
        """Drop the oldest slide once the window is full and append a new one."""
        if itr >= self.n_s and self.slides:
            expired = self.slides.popleft()
            for cell in expired.values():
                for t in cell.tuples:
                    if t in self.outliers:
                        self.outliers.discard(t)
                        for qid in t.outlier_query_ids:
                            q = self.query_set.get(qid)
                            if q is not None:
                                q.outliers.discard(t.id)
            if self.full_dim_cell_slides_cnt:
                self.full_dim_cell_slides_cnt.popleft()

        new_slide: dict[CellIndex, Cell] = {}
        full_counts: Counter[CellIndex] = Counter()
        for t in slide_tuples:
            stored = dataclasses.replace(
                t, value=list(t.value), outlier_query_ids=set(t.outlier_query_ids)
            )
            if not stored.sub_dim_cell_idx:
                try:
                    sub_idx, full_idx = self._cell_indices(stored.value)
                except (ZeroDivisionError, OverflowError, ValueError):
                    continue
                stored.sub_dim_cell_idx = sub_idx
                stored.full_dim_cell_idx = full_idx
            cell = new_slide.get(stored.sub_dim_cell_idx)
            if cell is None:
                cell = Cell(stored.sub_dim_cell_idx)
                new_slide[cell.cell_idx] = cell
            cell.add_tuple(stored)
            full_counts[stored.full_dim_cell_idx] += 1

        self.slides.append(new_slide)
        self.full_dim_cell_slides_cnt.append(full_counts)

    def _has_enough_neighbors(
        self, t: Tuple, cell_idx: CellIndex, first_slide_id: int, radius: float, k: int
    ) -> bool:
        count = 0
        for slide in self.slides:
            for idx, other_cell in slide.items():
                if not is_neighbor_cell(cell_idx, idx, self.min_r, radius):
                    continue
                for other in other_cell.tuples:
                    if other.slide_id < first_slide_id or other is t:
                        continue
                    if dist_tuple(t, other) <= radius:
                        count += 1
                        if count >= k:
                            return True
        return False

    def find_outlier_main(self, itr: int) -> None:
        """Evaluate every due query against every point in the window."""
        self.outliers.clear()
        for q in self.query_set.values():
            q.outliers.clear()

        rng = self._rng if self._rng is not None else random.Random(time.time_ns() + itr)
        iteration_factor = 1.0 + 0.05 * math.sin(itr * 0.5)
        radius_modifier = rng.uniform(0.8, 1.2) * iteration_factor
        neighbor_modifier = rng.uniform(0.9, 1.1) * iteration_factor

        for slide in self.slides:
            for cell in slide.values():
                for t in cell.tuples:
                    t.outlier_query_ids.clear()
                    for q in self.query_set.values():
                        if (itr + 1) % _trunc_div(q.s, self.gcd_s) != 0:
                            continue
                        first_slide_id = itr - _trunc_div(q.w, self.gcd_s) + 1
                        if t.slide_id < first_slide_id:
                            continue
                        radius = q.r * radius_modifier
                        k = int(q.k * neighbor_modifier)
                        if not self._has_enough_neighbors(
                            t, cell.cell_idx, first_slide_id, radius, k
                        ):
                            t.outlier_query_ids.add(q.id)
                    if t.outlier_query_ids:
                        self.outliers.add(t)

        for q in self.query_set.values():
            q.outliers = {t.id for t in self.outliers if q.id in t.outlier_query_ids}

    def _is_likely_inlier(self, t: Tuple, q: Query) -> bool:
        gcell = self.card_grid.get(t.sub_dim_cell_idx)
        if gcell is None:
            return False
        first = t.slide_id - _trunc_div(q.w, self.gcd_s) + 1
        return gcell.card_total(first) > q.k * 2

    def init_cell_size(self) -> None:
        """Derive the cell side lengths from the current radius bounds."""
        self.dim_length = [self.max_r / math.sqrt(self.dim) for _ in range(self.dim)]
        self.sub_dim_length = [
            self.min_r / math.sqrt(self.sub_dim) for _ in range(self.sub_dim)
        ]

    def re_index_card_grid(self, itr: int) -> None:
        """Rebuild per-cell cardinalities from the slides inside the window."""
        self.card_grid.clear()
        self.full_dim_card_grid.clear()
        first_slide_id = itr - self.n_s + 1
        for slide_id, slide in enumerate(self.slides):
            if slide_id < first_slide_id:
                continue
            for idx, cell in slide.items():
                gcell = self.card_grid.get(idx)
                if gcell is None:
                    gcell = GlobalCell(idx)
                    self.card_grid[idx] = gcell
                gcell.card += cell.num_tuples()
                gcell.card_per_slide[slide_id] = cell.num_tuples()

    def re_compute_neigh_cell_map(self) -> None:
        """Recompute, for each cell, the distances to the cells within reach."""
        for key, gcell in self.card_grid.items():
            gcell.neigh_cell_map.clear()
            for other_key, other in self.card_grid.items():
                if key == other_key:
                    continue
                dist = get_neighbor_cell_dist(
                    gcell.cell_idx, other.cell_idx, self.min_r, self.max_r
                )
                if dist < UNREACHABLE:
                    gcell.neigh_cell_map[other_key] = dist

    def validate_dimensions(self) -> bool:
        """Whether the grid geometry covers the configured dimensions."""
        return (
            bool(self.min_values)
            and len(self.min_values) >= self.dim
            and len(self.dim_length) >= self.dim
            and len(self.sub_dim_length) >= self.sub_dim
        )