"""Distance tests between points and between grid cells."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .models import Tuple

UNREACHABLE = math.inf
"""Distance reported when a threshold is exceeded before the sum is complete."""


def dist_tuple(t1: Tuple, t2: Tuple, threshold: float | None = None) -> float:
    """Euclidean distance between two points.

    With a ``threshold``, the computation stops early and returns
    :data:`UNREACHABLE` as soon as the distance is known to exceed it.
    """
    limit = None if threshold is None else threshold * threshold
    ss = 0.0
    for a, b in zip(t1.value, t2.value):
        ss += (a - b) ** 2
        if limit is not None and ss > limit:
            return UNREACHABLE
    return math.sqrt(ss)


def is_neighbor_tuple(t1: Tuple, t2: Tuple, threshold: float) -> bool:
    """Whether two points lie within ``threshold`` of each other."""
    return is_neighbor_tuple_cell(t1.value, t2.value, threshold)


def is_neighbor_tuple_cell(
    v1: Sequence[float], v2: Sequence[float], threshold: float
) -> bool:
    """Whether the coordinates ``v1`` lie within ``threshold`` of ``v2``.

    Only as many dimensions as ``v2`` has are compared.
    """
    limit = threshold * threshold
    ss = 0.0
    for a, b in zip(v1, v2):
        ss += (a - b) ** 2
        if ss > limit:
            return False
    return True


def _cell_distance_sq(
    c1: Sequence[int], c2: Sequence[int], min_r: float, threshold: float
) -> float | None:
    """Squared index distance, or None once the scaled distance reaches ``threshold``."""
    n = len(c1)
    limit = threshold * threshold
    ss = 0.0
    for a, b in zip(c1, c2):
        ss += (a - b) ** 2
        if ss / n * min_r * min_r >= limit:
            return None
    return ss


def get_neighbor_cell_dist(
    c1: Sequence[int], c2: Sequence[int], min_r: float, threshold: float
) -> float:
    """Approximate distance between two cells, scaled by ``min_r``.

    Returns :data:`UNREACHABLE` when the distance reaches ``threshold``.
    """
    if not c1:
        raise ValueError("cell index must not be empty")
    ss = _cell_distance_sq(c1, c2, min_r, threshold)
    if ss is None:
        return UNREACHABLE
    return math.sqrt(ss / len(c1)) * min_r


def is_neighbor_cell(
    c1: Sequence[int], c2: Sequence[int], min_r: float, threshold: float
) -> bool:
    """Whether two cells are closer than ``threshold`` after scaling by ``min_r``."""
    if not c1:
        return True
    return _cell_distance_sq(c1, c2, min_r, threshold) is not None