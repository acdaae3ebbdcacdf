import pytest

from mdual.models import Query
from mdual.query_loader import QueryLoader

ROWS = "0,0,10,0.5,5,100,50\n1,2,4,1.5,10,200,100\n2,0,3,0.25,3,150,50\n"


def _write(tmp_path, name, text):
    directory = tmp_path / "querysets"
    directory.mkdir(exist_ok=True)
    path = directory / f"{name}.csv"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def loader(tmp_path):
    _write(tmp_path, "qs", ROWS)
    return QueryLoader("qs", base_dir=tmp_path)


def test_summary_statistics(loader):
    assert loader.max_w == 200
    assert loader.gcd_s == 50
    assert loader.min_r == 0.25


@pytest.mark.parametrize(
    "itr, expected",
    [(0, {0, 2}), (2, {0, 1, 2}), (3, {0, 1}), (9, {0}), (10, set())],
)
def test_query_set_filters_by_time(loader, itr, expected):
    assert set(loader.query_set(itr)) == expected


def test_query_fields(loader):
    assert loader.query_set(2)[1] == Query(id=1, r=1.5, k=10, w=200, s=100)


def test_query_set_by_qid_range(loader):
    assert set(loader.query_set_by_qid(1, 2)) == {1, 2}
    assert set(loader.query_set_by_qid(0, 1)) == {0}
    assert loader.query_set_by_qid(0, 0) == {}
    assert loader.query_set_by_qid(3, 5) == {}


def test_short_rows_and_blank_lines_ignored(tmp_path):
    _write(tmp_path, "noisy", "\n9,9,9\n" + ROWS + "\n")
    loaded = QueryLoader("noisy", base_dir=tmp_path)
    assert set(loaded.query_set_by_qid(0, 100)) == {0, 1, 2}
    assert loaded.max_w == 200


def test_integer_fields_take_leading_digits(tmp_path):
    _write(tmp_path, "frac", "4,0,5,1.0,7,300.7,60\n")
    loaded = QueryLoader("frac", base_dir=tmp_path)
    assert loaded.max_w == 300
    assert loaded.query_set(0)[4].w == 300


def test_later_duplicate_wins(tmp_path):
    _write(tmp_path, "dup", "1,0,5,1.0,7,300,60\n1,0,5,2.0,8,400,60\n")
    loaded = QueryLoader("dup", base_dir=tmp_path)
    assert loaded.query_set(0)[1].r == 2.0


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        QueryLoader("absent", base_dir=tmp_path)


def test_removed_file_raises_on_query(tmp_path):
    path = _write(tmp_path, "gone", ROWS)
    loaded = QueryLoader("gone", base_dir=tmp_path)
    path.unlink()
    with pytest.raises(FileNotFoundError):
        loaded.query_set(0)
    with pytest.raises(FileNotFoundError):
        loaded.query_set_by_qid(0, 3)


def test_bad_integer_raises(tmp_path):
    _write(tmp_path, "bad", "0,0,10,0.5,5,abc,50\n")
    with pytest.raises(ValueError):
        QueryLoader("bad", base_dir=tmp_path)