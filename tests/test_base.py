import csv
import math

import pytest

from shardsim.measure.base import MeasureModule, format_float, write_metrics_to_csv


def _read(path):
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


@pytest.mark.parametrize("value", [0.5, 3.0, 1.25, 1e-3, 123456.789, -2.5])
def test_format_float_round_trips(value):
    assert float(format_float(value)) == value


def test_format_float_has_fixed_fraction_width():
    text = format_float(0.5)
    assert len(text.split(".")[1]) == 56
    assert text.rstrip("0") == "0.5"


def test_format_float_special_values():
    assert format_float(math.nan) == "NaN"
    assert format_float(math.inf) == "+Inf"
    assert format_float(-math.inf) == "-Inf"


def test_write_metrics_creates_file_with_header(tmp_path):
    header = ["EpochID", "Total tx # in this epoch"]
    rows = [["0", "a"], ["1", "b"]]
    path = write_metrics_to_csv(tmp_path, "metric", header, rows)
    assert path == tmp_path / "supervisor_measureOutput" / "metric.csv"
    assert _read(path) == [header] + rows


def test_write_metrics_appends_without_repeating_header(tmp_path):
    header = ["x", "y"]
    write_metrics_to_csv(tmp_path, "metric", header, [["1", "2"]])
    path = write_metrics_to_csv(tmp_path, "metric", header, [["3", "4"]])
    assert _read(path) == [header, ["1", "2"], ["3", "4"]]


def test_write_metrics_with_no_rows_writes_header_only(tmp_path):
    header = ["only", "header"]
    path = write_metrics_to_csv(tmp_path, "empty", header, [])
    assert _read(path) == [header]


def test_measure_module_is_abstract(tmp_path):
    with pytest.raises(TypeError):
        MeasureModule(tmp_path)