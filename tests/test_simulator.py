import io
import sys

import pytest

from mdual.data_loader import DataLoader
from mdual.monitor import MemoryThread
from mdual.query_loader import QueryLoader
from mdual.simulator import Simulator, format_time_output, main

ROWS = [
    "0,0",
    "0,0.1",
    "0,0.2",
    "100,100",
    "0,0.3",
    "0,0.4",
    "0,0.5",
    "200,200",
]


class _MidRng:
    def uniform(self, a, b):
        return (a + b) / 2.0


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "datasets").mkdir()
    (tmp_path / "querysets").mkdir()
    (tmp_path / "datasets" / "D.csv").write_text("\n".join(ROWS) + "\n")
    (tmp_path / "querysets" / "Q.csv").write_text("0,0,10,1.0,1,4,2\n")
    return tmp_path


def _simulator(base, out, rng=None):
    d_loader = DataLoader("D", base)
    q_loader = QueryLoader("Q", base)
    mem = MemoryThread(sampler=lambda: 5.0, interval=0.01)
    return Simulator("D", "Q", d_loader, q_loader, mem, rng=rng, out=out)


def test_format_time_output():
    assert format_time_output(1500.0) == pytest.approx(1.5)


def test_simulator_window_parameters(workspace):
    sim = _simulator(workspace, io.StringIO())
    assert sim.gcd_s == 2
    assert sim.n_s == 2
    assert sim.all_time_sum == 0.0


@pytest.mark.parametrize("rng", [None, _MidRng()])
def test_run_reports_isolated_points(workspace, rng):
    out = io.StringIO()
    sim = _simulator(workspace, out, rng)
    stats = sim.run(3, 1, 0.0)
    assert stats is not None
    assert stats.windows == 3
    assert stats.avg_outliers == 1.0
    assert stats.avg_outlier_queries == 1.0
    assert stats.avg_memory_mb == 5.0
    assert stats.peak_memory_mb == 5.0
    fields = out.getvalue().split()
    assert fields[0] == "D"
    assert fields[1] == "Q"
    assert fields[2] == "0.0"
    assert fields[-2:] == ["1", "1"]
    assert sim.mem_thread.running is False


def test_run_without_full_window_prints_nothing(tmp_path):
    (tmp_path / "datasets").mkdir()
    (tmp_path / "querysets").mkdir()
    (tmp_path / "datasets" / "D.csv").write_text("0,0\n0,1\n")
    (tmp_path / "querysets" / "Q.csv").write_text("0,0,10,1.0,1,8,2\n")
    out = io.StringIO()
    sim = _simulator(tmp_path, out)
    assert sim.run(3, 1, 0.0) is None
    assert out.getvalue() == ""


def test_time_sum_accumulates_across_runs(workspace):
    sim = _simulator(workspace, io.StringIO())
    sim.run(3, 1, 0.0)
    first_mem = sim.all_mem_sum
    sim.run(3, 1, 0.0)
    assert sim.all_mem_sum == pytest.approx(2 * first_mem)
    assert sim.all_time_sum >= 0.0


def test_run_stops_when_queries_run_out(workspace):
    out = io.StringIO()
    sim = _simulator(workspace, out)
    # With a ratio of 1.0 the second iteration asks for id 1, which does not exist.
    assert sim.run(3, 1, 1.0) is None
    assert out.getvalue() == ""


def _write_dataset(base, name, n):
    (base / "datasets").mkdir(exist_ok=True)
    (base / "querysets").mkdir(exist_ok=True)
    lines = [f"{i % 7},{(i * 3) % 11}" for i in range(n)]
    (base / "datasets" / f"{name}.csv").write_text("\n".join(lines) + "\n")


def test_main_prints_header_and_generates_queryset(tmp_path, capsys):
    _write_dataset(tmp_path, "STK", 60)
    code = main(["STK", "--base-dir", str(tmp_path), "--repeat", "1"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.split()[:8] == [
        "Dataset", "Queryset", "ChgQRatio", "Time", "AvgMem", "PeakMem", "#Out", "#OutQ",
    ]
    assert (tmp_path / "querysets" / "STK_Q10.csv").exists()


def test_main_reads_dataset_name_from_stdin(tmp_path, capsys, monkeypatch):
    _write_dataset(tmp_path, "TAO", 55)
    monkeypatch.setattr(sys, "stdin", io.StringIO("TAO\n"))
    code = main(["--base-dir", str(tmp_path), "--repeat", "1"])
    assert code == 0
    assert (tmp_path / "querysets" / "TAO_Q10.csv").exists()
    assert "Dataset" in capsys.readouterr().out


def test_main_missing_dataset_fails(tmp_path, capsys):
    (tmp_path / "querysets").mkdir()
    code = main(["NOPE", "--base-dir", str(tmp_path), "--repeat", "1"])
    assert code == 1
    assert "error" in capsys.readouterr().err