"""Generating random query sets for simulation runs."""

from __future__ import annotations

import math
import os
import random
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .models import Query

DEFAULT_RADII = {
    "STK": 0.5,
    "TAO": 1.5,
    "HPC": 10.0,
    "GAS": 1.5,
    "EM": 115.0,
    "FC": 525.0,
}
"""Default query radius of each known dataset."""

ALL_PARAMS = ("R", "K", "S", "W")


class RandomSource(Protocol):
    """Anything that draws floats in the unit interval, such as :class:`random.Random`."""

    def random(self) -> float: ...


def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


class QueryGenerator:
    """Writes query sets whose parameters vary randomly around defaults.

    Files go to ``querysets/<dataset>_Q<n>.csv`` below ``base_dir``.
    """

    def __init__(
        self,
        data: str,
        default_w: int,
        gcd_s: int,
        default_k: int,
        variation_times: int,
        *,
        base_dir: str | os.PathLike[str] = ".",
        rng: RandomSource | None = None,
    ) -> None:
        self.dataset = data
        self.default_w = default_w
        self.gcd_s = gcd_s
        self.default_k = default_k
        self.variation_times = variation_times
        self.default_r = DEFAULT_RADII.get(data, 0.0)
        self.num_queries = 0
        self.n_w = 0
        self.n_itr = 0
        self.base_dir = Path(base_dir)
        self._rng: RandomSource = rng if rng is not None else random.Random()

    def path_of(self, queryset: str) -> Path:
        """Location of the file of a query set."""
        return self.base_dir / "querysets" / f"{queryset}.csv"

    def _vary(self, varying_params: Iterable[str]) -> tuple[float, int, int, int]:
        r = self.default_r
        k = self.default_k
        s = self.gcd_s
        w = self.default_w
        var = self.variation_times
        for param in varying_params:
            if param == "R":
                rnd = 1.0 + self._rng.random() * (var - 1)
                r = _round_half_away(rnd * self.default_r * 100.0) / 100.0
            elif param == "K":
                k = self.default_k * int(1 + math.floor(self._rng.random() * var))
            elif param == "S":
                s = self.gcd_s * int(1 + math.floor(self._rng.random() * var))
            elif param == "W":
                max_factor = (self.default_w * var) / s
                w = s + s * int(math.floor(self._rng.random() * max_factor))
        return r, k, w, s

    def generate(self, num_q: int, n_w: int, varying_params: Iterable[str]) -> str:
        """Write a query set of ``num_q`` times the iteration count rows and return its name.

        The first row holds the defaults; every other row varies the
        parameters named in ``varying_params`` (``R``, ``K``, ``S``, ``W``),
        in the order given.
        """
        params = list(varying_params)
        queryset = f"{self.dataset}_Q{num_q}"
        with open(self.path_of(queryset), "w", encoding="utf-8", newline="\n") as fout:
            self.n_w = n_w
            self.n_itr = (
                _trunc_div(self.default_w * self.variation_times, self.gcd_s) + n_w
            )
            fout.write(
                f"0,0,{self.n_itr},{float(self.default_r):g},"
                f"{self.default_k},{self.default_w},{self.gcd_s}\n"
            )
            for i in range(1, num_q * self.n_itr):
                r, k, w, s = self._vary(params)
                fout.write(f"{i},0,{self.n_itr},{r:g},{k},{w},{s}\n")
        return queryset

    def generate_one(self, q_id: int, varying_params: Iterable[str]) -> Query:
        """A single query whose named parameters are drawn at random."""
        r = self.default_r
        k = self.default_k
        s = self.gcd_s
        w = self.default_w
        for param in varying_params:
            if param == "R":
                r = _round_half_away((1.0 + self._rng.random()) * self.default_r * 100.0) / 100.0
            elif param == "K":
                k = int(1 + math.floor(self._rng.random() * (self.default_k * 2)))
            elif param == "S":
                s = self.gcd_s * int(1 + math.floor(self._rng.random() * 4))
            elif param == "W":
                max_factor = self.default_w / s
                w = s + s * int(math.floor(self._rng.random() * max_factor))
        return Query(id=q_id, r=r, k=k, w=w, s=s)


def run_main(base_dir: str | os.PathLike[str] = ".") -> str:
    """Generate the standard 100-query set, print its rows and return its name."""
    gen = QueryGenerator("", 10000, 500, 50, 5, base_dir=base_dir)
    gen.default_r = 0.5
    gen.num_queries = 100
    gen.n_w = 10
    gen.n_itr = gen.default_w // gen.gcd_s + gen.n_w
    queryset = gen.generate(gen.num_queries, gen.n_w, ALL_PARAMS)
    with open(gen.path_of(queryset), encoding="utf-8") as fin:
        for line in fin:
            print(line.removesuffix("\n"))
    return queryset