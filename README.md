# mdual

`mdual` finds distance-based outliers in a data stream. It answers many
outlier queries over the same stream together.

Each query asks: *which points of the current window have fewer than `K`
neighbours within radius `R`?* A query also has its own window size `W` and
slide size `S`. The stream arrives one slide at a time. The detector keeps the
points of the last few slides in a grid of cells. Cell distances let it skip
cells that cannot hold neighbours. Every point that is an outlier for at least
one due query is reported, together with the ids of those queries.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Data layout

Datasets and query sets are plain CSV files. They are read below a base
directory, which is the working directory by default:

- `datasets/<name>.csv`: one point per line, comma-separated numeric
  coordinates. The number of columns on the first line sets the
  dimensionality. Per-column minima and maxima are taken over the whole file.
  Datasets with more than 15 columns use a 3-dimensional sub-grid.
- `querysets/<name>.csv`: one query per line, with the columns
  `id,start_time,end_time,R,K,W,S`. Empty lines and lines with fewer than
  seven fields are skipped.

## Command line

```
mdual [DATASET] [--base-dir DIR] [--repeat N]
```

If `DATASET` is not given, the command asks for it, for example `STK`. It
writes a random query set of 10 queries to `querysets/<DATASET>_Q10.csv`.
That set varies `R`, `K`, `S` and `W` around per-dataset defaults. It then
runs the detector over `datasets/<DATASET>.csv` `N` times (default 5). The
command prints a header and then one row per run. A row holds the average
time per window, the average and peak memory, and the average number of
outliers and of outlier/query pairs per window. The command exits with
status 1 and a message on standard error if a file cannot be read or written.

## Library use

```python
import random

from mdual.models import Tuple, Query
from mdual.detector import MDUAL

# 2-D stream, 4 slides per window, slides of 50 points, grid origin at (0, 0)
detector = MDUAL(2, 2, 4, 50, [0.0, 0.0], rng=random.Random(1))

queries = {0: Query(0, 0.5, 5, 200, 50)}
slide = [Tuple(i, 0, [float(i), float(i)]) for i in range(50)]

outliers = detector.find_outlier(slide, queries, 0)
for point in outliers:
    print(point.id, sorted(point.outlier_query_ids))
```

`find_outlier` raises `ValueError` for a negative iteration. A query is only
evaluated at iterations where `(itr + 1)` is a multiple of `S / gcd_s`. Each
evaluation scales the query radius by a random factor in `[0.8, 1.2]` and
`K` by a factor in `[0.9, 1.1]`. Both factors are also multiplied by
`1 + 0.05 * sin(itr / 2)`. The random numbers come from `rng`, which is any
object with a `uniform(a, b)` method. Without one, a generator is seeded from
the clock and the iteration number, so the results differ from run to run.

The other modules:

- `mdual.models`: `Tuple` (a stream point) and `Query`.
- `mdual.distance`: `dist_tuple`, `is_neighbor_tuple`,
  `is_neighbor_tuple_cell`, `get_neighbor_cell_dist` and `is_neighbor_cell`.
- `mdual.cell`: `Cell` (grid cells holding points) and `GlobalCell`
  (per-cell counts per slide and distances to neighbouring cells).
- `mdual.data_loader.DataLoader(dataset, base_dir=".")`: reads a dataset.
  `new_slide_tuples(itr, s)` returns the points of lines `itr*s` up to
  `(itr+1)*s`.
- `mdual.query_loader.QueryLoader(queryset, base_dir=".")`: reads a query
  set and records `max_w`, `gcd_s` (the smallest slide size) and `min_r`.
  `query_set(curr_itr)` returns the queries active at an iteration, and
  `query_set_by_qid(from_qid, num_queries)` returns a range of query ids.
- `mdual.query_generator`: `QueryGenerator` writes random query sets with
  `generate(num_q, n_w, varying_params)` and makes single random queries with
  `generate_one(q_id, varying_params)`. `run_main(base_dir)` writes and prints
  a standard 100-query set.
- `mdual.monitor`: `cpu_time_ns`, `peak_memory_bytes`,
  `current_memory_usage_mb`, and `MemoryThread`, which samples memory use on
  a background thread.
- `mdual.simulator`: `Simulator` runs a dataset and a query set end to end.
  `run(n_w, num_queries, changed_q_ratio)` prints one report row and returns
  a `RunStats`, or `None` when no full window was evaluated. `main` is the
  command above.

## Limitations

- Memory figures come from `/proc/self/status` (virtual size) on Linux and
  from `getrusage` (peak resident size) on macOS. Elsewhere
  `current_memory_usage_mb` reports 0.0. `peak_memory_bytes` needs the POSIX
  `resource` module.
- `MDUAL.re_index_card_grid` and `MDUAL.re_compute_neigh_cell_map` build the
  per-cell statistics, but `find_outlier` does not use them. It counts
  neighbours directly, point by point.