import pandas as pd
import pytest
from funnelview_app.intelligence_engine.primitives.period_index import (
    ReferenceMode,
    build_period_index,
    is_current_period,
    period_bounds,
    period_progress,
    progress_label,
    select_reference_index,
    weekday_name,
)

# Wednesday of the week starting Monday 2025-01-20
NOW = pd.Timestamp("2025-01-22 10:00:00")


def test_build_period_index_sorts_and_dedupes():
    df = pd.DataFrame({"period": ["2025-01-06", "2025-01-20", "2025-01-13", "2025-01-20", "2025-01-06"]})
    assert build_period_index(df) == ["2025-01-20", "2025-01-13", "2025-01-06"]


def test_build_period_index_accepts_plain_keys_and_empty_input():
    assert build_period_index(["2024-12-01", "2025-01-01"]) == ["2025-01-01", "2024-12-01"]
    assert build_period_index([]) == []
    assert build_period_index(pd.DataFrame({"period": []})) == []


def test_period_bounds_week_rolls_back_to_monday():
    start, end = period_bounds("2025-01-22", "week")
    assert start == pd.Timestamp("2025-01-20")
    assert end == pd.Timestamp("2025-01-27")


def test_period_bounds_month():
    start, end = period_bounds("2024-02-01", "month")
    assert start == pd.Timestamp("2024-02-01")
    assert end == pd.Timestamp("2024-03-01")


def test_period_bounds_rejects_unknown_grain():
    with pytest.raises(ValueError):
        period_bounds("2025-01-01", "quarter")


def test_select_reference_index_modes():
    periods = ["2025-01-20", "2025-01-13", "2025-01-06"]
    assert select_reference_index(periods, ReferenceMode.LATEST, "week", NOW) == 0
    # 2025-01-20 is still in progress on NOW => last complete week is index 1
    assert select_reference_index(periods, ReferenceMode.LATEST_COMPLETE, "week", NOW) == 1
    assert select_reference_index(periods, ReferenceMode.ALL_TIME, "week", NOW) is None
    assert select_reference_index([], ReferenceMode.LATEST, "week", NOW) is None


def test_latest_complete_keeps_latest_when_it_has_ended():
    periods = ["2025-01-13", "2025-01-06"]
    assert select_reference_index(periods, "latest_complete", "week", NOW) == 0


def test_latest_complete_with_single_in_progress_period():
    assert select_reference_index(["2025-01-20"], "latest_complete", "week", NOW) == 0


def test_period_progress_mid_week():
    # 2 days + 10 hours elapsed = 58h of 168h
    assert period_progress("2025-01-20", "week", NOW) == pytest.approx(58 / 168 * 100)
    assert progress_label(period_progress("2025-01-20", "week", NOW)) == "Wednesday"


def test_period_progress_is_clamped():
    assert period_progress("2025-01-06", "week", NOW) == 100.0
    assert period_progress("2025-02-03", "week", NOW) == 0.0
    assert progress_label(0) == "Week not started"
    assert progress_label(100.0) == "Sunday"


def test_current_period_and_weekday_with_timezone_aware_now():
    now = pd.Timestamp("2025-01-26 23:30:00", tz="America/New_York")
    assert is_current_period("2025-01-20", "week", now)
    assert weekday_name(now) == "Sunday"
    assert is_current_period("2025-01-01", "month", now)
