"""Core records shared by the detector: stream points and outlier queries."""

from __future__ import annotations

from dataclasses import dataclass, field

CellIndex = tuple[int, ...]


@dataclass(eq=False)
class Tuple:
    """A data point of the stream.

    Points are compared and hashed by identity, so equal-valued points
    stay distinct members of sets and cells.
    """

    id: int = 0
    slide_id: int = 0
    value: list[float] = field(default_factory=list)
    full_dim_cell_idx: CellIndex = ()
    sub_dim_cell_idx: CellIndex = ()
    outlier_query_ids: set[int] = field(default_factory=set)


@dataclass
class Query:
    """A distance-based outlier query: radius ``r``, neighbour count ``k``,
    window size ``w`` and slide size ``s``."""

    id: int = 0
    r: float = 0.0
    k: int = 0
    w: int = 0
    s: int = 0
    outliers: set[int] = field(default_factory=set)
    layer_cnt: list[int] = field(default_factory=list)

    def add_outlier(self, tuple_id: int) -> None:
        """Record the id of a point that is an outlier for this query."""
        self.outliers.add(tuple_id)