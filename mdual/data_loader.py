"""Reading stream points from a CSV dataset, one slide at a time."""

from __future__ import annotations

import os
import sys
from itertools import islice
from pathlib import Path

from .models import Tuple

_DBL_MAX = sys.float_info.max


def _fields(line: str) -> list[str]:
    """Split a line on commas; a trailing empty field is not a field."""
    if not line:
        return []
    fields = line.split(",")
    if fields[-1] == "":
        fields.pop()
    return fields


class DataLoader:
    """A dataset stored as ``datasets/<name>.csv`` below ``base_dir``.

    Opening the loader scans the whole file once to learn the number of
    dimensions and the per-dimension minimum and maximum.
    """

    def __init__(self, dataset: str, base_dir: str | os.PathLike[str] = ".") -> None:
        self.file_path = Path(base_dir) / "datasets" / f"{dataset}.csv"
        with open(self.file_path, encoding="utf-8") as fin:
            first = fin.readline()
            if not first:
                raise ValueError(f"file is empty: {self.file_path}")
            raw = _fields(first.removesuffix("\n"))
            self.dim = len(raw)
            self.sub_dim = 3 if self.dim > 15 else self.dim
            self.min_values = [_DBL_MAX] * self.dim
            self.max_values = [-_DBL_MAX] * self.dim
            self._priority = list(range(self.dim))
            self._observe(raw)
            for line in fin:
                self._observe(_fields(line.removesuffix("\n")))

    def _observe(self, tokens: list[str]) -> None:
        for i, token in enumerate(tokens[: self.dim]):
            val = float(token)
            if val < self.min_values[i]:
                self.min_values[i] = val
            if val > self.max_values[i]:
                self.max_values[i] = val

    def new_slide_tuples(self, itr: int, s: int) -> list[Tuple]:
        """Points of lines ``itr*s`` up to ``(itr+1)*s`` of the file.

        A line that cannot be parsed is skipped but still consumes its id;
        missing columns are taken as zero. An unreadable file yields no points.
        """
        start = itr * s
        end = (itr + 1) * s
        low = max(start, 0)
        if end <= low:
            return []
        try:
            fin = open(self.file_path, encoding="utf-8")
        except OSError:
            return []
        slide: list[Tuple] = []
        with fin:
            for tid, line in enumerate(islice(fin, low, end), start=low):
                tokens = _fields(line.removesuffix("\n"))
                try:
                    values = [
                        float(tokens[col]) if col < len(tokens) else 0.0
                        for col in self._priority
                    ]
                except ValueError:
                    continue
                slide.append(Tuple(id=tid, slide_id=itr, value=values))
        return slide