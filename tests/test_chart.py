"""Tests for the ChartDescriptor edit model."""

import random

import pytest

from report_editor.core.chart import ChartDescriptor, ChartType, Dataset
from report_editor.core.errors import MalformedChartState
from report_editor.styles.colors import DATASET_PALETTE


def _make_chart():
    return ChartDescriptor(
        id="revenue",
        type="bar",
        labels=["Jan", "Feb", "Mar"],
        datasets=[
            Dataset("2023", [1, 2, 3], "#111111", "#111111"),
            Dataset("2024", [4, 5, 6], "#222222", "#222222"),
        ],
        title="Revenue",
    )


def test_add_row_appends_label_and_zeros():
    chart = _make_chart()
    chart.add_row()
    assert chart.labels == ["Jan", "Feb", "Mar", "Label 4"]
    assert chart.datasets[0].data == [1, 2, 3, 0]
    assert chart.datasets[1].data == [4, 5, 6, 0]


def test_add_row_with_label():
    chart = _make_chart()
    chart.add_row("Apr")
    assert chart.labels[-1] == "Apr"


def test_remove_row_removes_index_everywhere():
    chart = _make_chart()
    chart.remove_row(1)
    assert chart.labels == ["Jan", "Mar"]
    assert chart.datasets[0].data == [1, 3]
    assert chart.datasets[1].data == [4, 6]


def test_remove_row_with_ragged_datasets():
    """Rows are removed by index even when a dataset is shorter than the labels."""
    chart = _make_chart()
    chart.datasets[1].data = [4, 5]
    chart.remove_row(1)
    assert chart.labels == ["Jan", "Mar"]
    assert chart.datasets[0].data == [1, 3]
    assert chart.datasets[1].data == [4]


def test_remove_row_out_of_range():
    chart = _make_chart()
    with pytest.raises(IndexError):
        chart.remove_row(3)


def test_add_dataset_seeds_zeros_and_palette_color():
    chart = _make_chart()
    ds = chart.add_dataset()
    assert ds.data == [0, 0, 0]
    assert ds.label == "Dataset 3"
    assert ds.background_color == DATASET_PALETTE[2 % len(DATASET_PALETTE)]
    assert ds.border_color == ds.background_color


def test_add_dataset_palette_wraps():
    chart = ChartDescriptor(id="c", type="line", labels=["a"], datasets=[])
    for _ in range(len(DATASET_PALETTE) + 1):
        chart.add_dataset()
    assert chart.datasets[-1].background_color == DATASET_PALETTE[0]


def test_remove_dataset():
    chart = _make_chart()
    chart.remove_dataset(0)
    assert [ds.label for ds in chart.datasets] == ["2024"]


def test_cannot_remove_last_dataset():
    chart = _make_chart()
    chart.remove_dataset(0)
    with pytest.raises(ValueError):
        chart.remove_dataset(0)


def test_set_dataset_color_sets_fill_and_outline():
    chart = _make_chart()
    chart.set_dataset_color(0, "#ff0000")
    assert chart.datasets[0].background_color == "#ff0000"
    assert chart.datasets[0].border_color == "#ff0000"


def test_set_value_parses_numbers():
    chart = _make_chart()
    chart.set_value(0, 1, "25")
    chart.set_value(1, 2, "not a number")
    assert chart.datasets[0].data[1] == 25
    assert chart.datasets[1].data[2] == 0


def test_set_type_validates():
    chart = _make_chart()
    chart.set_type("polarArea")
    assert chart.type == ChartType.POLAR_AREA.value
    with pytest.raises(ValueError):
        chart.set_type("scatter3d")


def test_normalize_pads_and_truncates():
    chart = _make_chart()
    chart.datasets[0].data = [1]
    chart.datasets[1].data = [4, 5, 6, 7, 8]
    assert chart.normalize() is True
    assert chart.datasets[0].data == [1, 0, 0]
    assert chart.datasets[1].data == [4, 5, 6]
    assert chart.normalize() is False


def test_check_raises_on_ragged_data():
    chart = _make_chart()
    chart.check()
    chart.datasets[0].data.append(9)
    with pytest.raises(MalformedChartState):
        chart.check()


def test_random_edits_keep_datasets_aligned():
    rng = random.Random(7)
    chart = _make_chart()
    for _ in range(200):
        op = rng.choice(["add_row", "remove_row", "add_dataset", "remove_dataset"])
        if op == "add_row":
            chart.add_row()
        elif op == "remove_row" and chart.labels:
            chart.remove_row(rng.randrange(len(chart.labels)))
        elif op == "add_dataset":
            chart.add_dataset()
        elif op == "remove_dataset" and len(chart.datasets) > 1:
            chart.remove_dataset(rng.randrange(len(chart.datasets)))
        assert chart.is_consistent


def test_to_dict_uses_chart_keys():
    d = _make_chart().to_dict()
    assert d["datasets"][0]["backgroundColor"] == "#111111"
    assert ChartDescriptor.from_dict(d).datasets[1].data == [4, 5, 6]
