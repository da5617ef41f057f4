import pandas as pd
import pytest
from funnelview_app.intelligence_engine.primitives.dimensional_aggregation import (
    aggregate_all_time,
    aggregate_dimensions,
    build_series,
    build_stacked_totals,
    summarize_totals,
)
from funnelview_app.intelligence_engine.primitives.period_index import build_period_index


def _rows(records):
    """records: (period, dimension_value, sessions[, demo_submit])"""
    data = {"period": [], "dimension_value": [], "sessions": [], "demo_submit": [], "vf_signup": []}
    for rec in records:
        data["period"].append(rec[0])
        data["dimension_value"].append(rec[1])
        data["sessions"].append(rec[2])
        data["demo_submit"].append(rec[3] if len(rec) > 3 else 0)
        data["vf_signup"].append(0)
    return pd.DataFrame(data)


def test_end_to_end_accumulator():
    rows = _rows([
        ("2025-01-20", "Google", 100),
        ("2025-01-13", "Google", 80),
        ("2025-01-06", "Google", 60),
    ])
    periods = build_period_index(rows)
    accs = aggregate_dimensions(rows, periods, 0)

    google = accs["Google"]
    assert google.current == 100
    assert google.previous == 80
    # only 2 trailing periods exist; averages use what is available
    assert google.trailing4_sum == 140
    assert google.trailing4_count == 2
    assert google.trailing12_count == 2
    assert google.avg4 == pytest.approx(70)
    assert google.series == [60, 80, 100]


def test_duplicate_rows_are_summed():
    rows = _rows([
        ("2025-01-20", "Google", 40),
        ("2025-01-20", "Google", 60),
        ("2025-01-13", "Google", 80),
    ])
    accs = aggregate_dimensions(rows, build_period_index(rows), 0)
    assert accs["Google"].current == 100


def test_value_absent_from_reference_still_appears():
    rows = _rows([
        ("2025-01-20", "Google", 100),
        ("2025-01-13", "Bing", 30),
    ])
    accs = aggregate_dimensions(rows, build_period_index(rows), 0)
    assert accs["Bing"].current == 0
    assert accs["Bing"].previous == 30
    assert accs["Google"].previous == 0


def test_reference_out_of_range_returns_empty():
    rows = _rows([("2025-01-20", "Google", 100)])
    periods = build_period_index(rows)
    assert aggregate_dimensions(rows, periods, 5) == {}
    assert aggregate_dimensions(rows, periods, None) == {}
    assert aggregate_dimensions(rows, [], 0) == {}


def test_oldest_reference_has_no_previous():
    rows = _rows([("2025-01-13", "Google", 80), ("2025-01-06", "Google", 60)])
    accs = aggregate_dimensions(rows, build_period_index(rows), 1)
    assert accs["Google"].current == 60
    assert accs["Google"].previous is None
    assert accs["Google"].trailing4_count == 0
    assert accs["Google"].avg4 is None


def test_trailing_windows_are_capped():
    periods = [str(d.date()) for d in pd.date_range("2024-10-07", periods=16, freq="7D")]
    rows = _rows([(p, "Google", 10) for p in periods])
    index = build_period_index(rows)
    accs = aggregate_dimensions(rows, index, 0)
    assert accs["Google"].trailing4_count == 4
    assert accs["Google"].trailing4_sum == 40
    assert accs["Google"].trailing12_count == 12
    assert accs["Google"].trailing12_sum == 120
    assert len(accs["Google"].series) == 12


def test_newer_periods_than_reference_are_ignored():
    rows = _rows([
        ("2025-01-20", "Google", 100),
        ("2025-01-13", "Google", 80),
        ("2025-01-06", "Google", 60),
    ])
    accs = aggregate_dimensions(rows, build_period_index(rows), 1)
    assert accs["Google"].current == 80
    assert accs["Google"].previous == 60
    assert accs["Google"].trailing4_count == 1


def test_null_dimension_values_use_none_sentinel():
    rows = _rows([("2025-01-20", None, 5), ("2025-01-20", "", 7), ("2025-01-20", "Google", 1)])
    accs = aggregate_dimensions(rows, build_period_index(rows), 0)
    assert accs["(none)"].current == 12


def test_input_frame_is_not_mutated():
    rows = _rows([("2025-01-20", None, 5), ("2025-01-13", "Google", 1)])
    before = rows.copy()
    aggregate_dimensions(rows, build_period_index(rows), 0)
    pd.testing.assert_frame_equal(rows, before)


def test_event_metric_tracks_sessions_denominator():
    rows = _rows([
        ("2025-01-20", "Google", 100, 5),
        ("2025-01-13", "Google", 80, 8),
    ])
    accs = aggregate_dimensions(rows, build_period_index(rows), 0, metric="demo_submit")
    assert accs["Google"].current == 5
    assert accs["Google"].sessions_current == 100
    assert accs["Google"].sessions_previous == 80
    assert accs["Google"].trailing4_sessions == 80


def test_unknown_metric_column_raises():
    rows = _rows([("2025-01-20", "Google", 100)])
    with pytest.raises(ValueError):
        aggregate_dimensions(rows, build_period_index(rows), 0, metric="revenue")


def test_summary_conserves_totals():
    rows = _rows([
        ("2025-01-20", "Google", 100),
        ("2025-01-20", "Bing", 50),
        ("2025-01-13", "Google", 80),
        ("2025-01-13", "Direct", 20),
    ])
    accs = aggregate_dimensions(rows, build_period_index(rows), 0)
    total = summarize_totals(accs)
    assert total.current == sum(a.current for a in accs.values()) == 150
    assert total.previous == 100
    assert total.series == [100, 150]


def test_summary_of_nothing_is_empty_accumulator():
    total = summarize_totals({})
    assert total.current == 0
    assert total.previous is None


def test_all_time_sums_every_period():
    rows = _rows([
        ("2025-01-20", "Google", 100),
        ("2025-01-13", "Google", 80),
        ("2025-01-06", "Bing", 60),
    ])
    accs = aggregate_all_time(rows, build_period_index(rows))
    assert accs["Google"].current == 180
    assert accs["Bing"].current == 60
    assert accs["Google"].previous is None
    assert accs["Google"].trailing4_count == 0


def test_series_align_to_caller_periods():
    rows = _rows([
        ("2025-01-20", "Google", 100),
        ("2025-01-06", "Google", 60),
        ("2025-01-20", "Bing", 10),
    ])
    periods = ["2025-01-06", "2025-01-13", "2025-01-20"]
    series = build_series(rows, ["Google", "Bing"], periods)
    assert series["Google"] == [60, 0, 100]
    assert series["Bing"] == [0, 0, 10]
    assert build_stacked_totals(rows, ["Google", "Bing"], periods) == [60, 0, 110]
    assert build_stacked_totals(rows, [], periods) == [0, 0, 0]
