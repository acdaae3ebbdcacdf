"""Reading outlier query definitions from a CSV query set."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterator
from pathlib import Path

from .models import Query

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
_DBL_MAX = sys.float_info.max

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def _to_int(token: str) -> int:
    """Parse the leading integer of ``token``, ignoring what follows it."""
    match = _INT_PREFIX.match(token)
    if match is None:
        raise ValueError(f"invalid integer: {token!r}")
    return int(match.group(1))


def _fields(line: str) -> list[str]:
    fields = line.split(",")
    if fields[-1] == "":
        fields.pop()
    return fields


class QueryLoader:
    """A query set stored as ``querysets/<name>.csv`` below ``base_dir``.

    Each row reads ``id,start,end,R,K,W,S``; rows with fewer than seven
    fields and empty lines are ignored. Opening the loader records the
    largest window, the smallest slide and the smallest radius.
    """

    def __init__(self, queryset: str, base_dir: str | os.PathLike[str] = ".") -> None:
        self.file_path = Path(base_dir) / "querysets" / f"{queryset}.csv"
        self.max_w = INT_MIN
        self.gcd_s = INT_MAX
        self.min_r = _DBL_MAX
        for fields in self._rows():
            r = float(fields[3])
            w = _to_int(fields[5])
            s = _to_int(fields[6])
            self.max_w = max(self.max_w, w)
            self.gcd_s = min(self.gcd_s, s)
            self.min_r = min(self.min_r, r)

    def _rows(self) -> Iterator[list[str]]:
        with open(self.file_path, encoding="utf-8") as fin:
            for line in fin:
                line = line.removesuffix("\n")
                if not line:
                    continue
                fields = _fields(line)
                if len(fields) >= 7:
                    yield fields

    @staticmethod
    def _make_query(qid: int, fields: list[str]) -> Query:
        return Query(
            id=qid,
            r=float(fields[3]),
            k=_to_int(fields[4]),
            w=_to_int(fields[5]),
            s=_to_int(fields[6]),
        )

    def query_set(self, curr_itr: int) -> dict[int, Query]:
        """Queries active at iteration ``curr_itr``, keyed by id."""
        queries: dict[int, Query] = {}
        for fields in self._rows():
            qid = _to_int(fields[0])
            s_time = _to_int(fields[1])
            e_time = _to_int(fields[2])
            if s_time <= curr_itr < e_time:
                queries[qid] = self._make_query(qid, fields)
        return queries

    def query_set_by_qid(self, from_qid: int, num_queries: int) -> dict[int, Query]:
        """Queries whose id lies in ``[from_qid, from_qid + num_queries)``."""
        queries: dict[int, Query] = {}
        for fields in self._rows():
            qid = _to_int(fields[0])
            if from_qid <= qid < from_qid + num_queries:
                queries[qid] = self._make_query(qid, fields)
        return queries