"""Running the detector over a dataset and query set and reporting statistics."""

from __future__ import annotations

import argparse
import os
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from .data_loader import DataLoader
from .detector import MDUAL, UniformSource
from .monitor import MemoryThread, cpu_time_ns
from .query_generator import ALL_PARAMS, QueryGenerator
from .query_loader import QueryLoader

HEADER_FORMAT = "%-10s %10s %10s %10s %10s %10s %10s %10s"
ROW_FORMAT = "%-10s %10s %10.1f %10.2f %10.1f %10.1f %10d %10d"


def format_time_output(original_time: float) -> float:
    """Scale a time by one thousandth for the report."""
    return original_time / 1000.0


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


@dataclass(frozen=True)
class RunStats:
    """Averages over the windows evaluated in one run."""

    windows: int
    avg_time_ms: float
    avg_memory_mb: float
    peak_memory_mb: float
    avg_outliers: float
    avg_outlier_queries: float


class Simulator:
    """Feeds slides and changing query sets to the detector and measures it.

    The time and memory sums accumulate across calls to :meth:`run`.
    """

    def __init__(
        self,
        dataset: str,
        queryset: str,
        d_loader: DataLoader,
        q_loader: QueryLoader,
        mem_thread: MemoryThread,
        *,
        rng: UniformSource | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.dataset = dataset
        self.queryset = queryset
        self.d_loader = d_loader
        self.q_loader = q_loader
        self.mem_thread = mem_thread
        self.all_time_sum = 0.0
        self.all_mem_sum = 0.0
        self.gcd_s = q_loader.gcd_s
        self.n_s = _trunc_div(q_loader.max_w, q_loader.gcd_s)
        self.verbose = False
        self._rng = rng
        self._out = out

    def run(self, n_w: int, num_queries: int, changed_q_ratio: float) -> RunStats | None:
        """Slide over ``n_w`` windows, print a report row and return the averages.

        Each iteration asks for ``num_queries`` queries starting
        ``num_queries * changed_q_ratio`` ids further on. Returns None, and
        prints nothing, when no full window was evaluated.
        """
        md = MDUAL(
            self.d_loader.dim,
            self.d_loader.sub_dim,
            self.n_s,
            self.gcd_s,
            self.d_loader.min_values,
            rng=self._rng,
        )
        self.mem_thread.start()
        try:
            num_win = 0
            num_changed = int(num_queries * changed_q_ratio)
            total_outliers = 0
            total_out_queries = 0
            for itr in range(n_w + self.n_s - 1):
                query_set = self.q_loader.query_set_by_qid(itr * num_changed, num_queries)
                if not query_set:
                    break
                slide = self.d_loader.new_slide_tuples(itr, self.gcd_s)
                if not slide:
                    break
                start = cpu_time_ns()
                outliers = md.find_outlier(slide, query_set, itr)
                end = cpu_time_ns()
                if itr >= self.n_s - 1:
                    self.all_time_sum += (end - start) / 1_000_000.0
                    self.mem_thread.update_memory()
                    self.all_mem_sum += self.mem_thread.current_snapshot()
                    total_outliers += len(outliers)
                    total_out_queries += sum(len(t.outlier_query_ids) for t in outliers)
                    num_win += 1

            if num_win == 0:
                return None
            stats = RunStats(
                windows=num_win,
                avg_time_ms=self.all_time_sum / num_win,
                avg_memory_mb=self.all_mem_sum / num_win,
                peak_memory_mb=self.mem_thread.max_memory(),
                avg_outliers=total_outliers / num_win,
                avg_outlier_queries=total_out_queries / num_win,
            )
            out = self._out if self._out is not None else sys.stdout
            print(
                ROW_FORMAT
                % (
                    self.dataset,
                    self.queryset,
                    changed_q_ratio,
                    format_time_output(stats.avg_time_ms),
                    stats.avg_memory_mb,
                    stats.peak_memory_mb,
                    int(stats.avg_outliers),
                    int(stats.avg_outlier_queries),
                ),
                file=out,
            )
            return stats
        finally:
            self.mem_thread.stop()


def main(argv: Sequence[str] | None = None) -> int:
    """Generate a query set for a dataset and report repeated simulation runs."""
    parser = argparse.ArgumentParser(
        prog="mdual", description="Run the outlier detector over a dataset."
    )
    parser.add_argument("dataset", nargs="?", help="dataset name, e.g. STK")
    parser.add_argument(
        "--base-dir",
        default=".",
        help="directory holding datasets/ and querysets/",
    )
    parser.add_argument("--repeat", type=int, default=5, help="number of runs")
    args = parser.parse_args(argv)

    dataset = args.dataset
    if dataset is None:
        try:
            dataset = input("Enter dataset name (e.g., STK): ")
        except EOFError:
            dataset = ""

    num_queries = 10
    changed_q_ratio = 0.2
    default_w = 1000
    gcd_s = 50
    default_k = 5
    n_w = 10
    variation_times = 10
    base_dir: str | os.PathLike[str] = Path(args.base_dir)

    try:
        generator = QueryGenerator(
            dataset, default_w, gcd_s, default_k, variation_times, base_dir=base_dir
        )
        queryset = generator.generate(num_queries, n_w, ALL_PARAMS)
        print(
            HEADER_FORMAT
            % ("Dataset", "Queryset", "ChgQRatio", "Time", "AvgMem", "PeakMem", "#Out", "#OutQ")
        )
        d_loader = DataLoader(dataset, base_dir)
        q_loader = QueryLoader(queryset, base_dir)
        sim = Simulator(dataset, queryset, d_loader, q_loader, MemoryThread())
        for _ in range(args.repeat):
            sim.run(n_w, num_queries, changed_q_ratio)
            time.sleep(0.1)
        print()
    except (OSError, ValueError, ArithmeticError) as ex:
        print(f"error: {ex}", file=sys.stderr)
        return 1
    return 0