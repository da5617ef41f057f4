import pandas as pd
import pytest
from funnelview_app.intelligence_engine.data_structures import Accumulator
from funnelview_app.intelligence_engine.primitives.comparative_analysis import NEW
from funnelview_app.intelligence_engine.primitives.projection import (
    WEEKDAY_MULTIPLIERS,
    is_projection_eligible,
    pacing_status,
    pacing_vs_reference,
    project,
    project_accumulator,
)

NOW = pd.Timestamp("2025-01-22 10:00:00")  # Wednesday


def test_sunday_projection_is_identity():
    assert WEEKDAY_MULTIPLIERS["Sunday"] == 1.0
    assert project(250, "Sunday") == 250


def test_early_week_projection_scales_up():
    assert project(100, "Monday") > 100
    assert project(170, "Monday") == 1000
    assert project(49, "Wednesday") == 100
    assert project(0, "Tuesday") == 0


def test_unknown_weekday_uses_identity():
    assert project(42, "Caturday") == 42


def test_multipliers_decrease_through_the_week():
    days = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    values = [WEEKDAY_MULTIPLIERS[d] for d in days]
    assert values == sorted(values, reverse=True)


def test_projection_eligibility():
    assert is_projection_eligible("2025-01-20", "week", NOW)
    # ended 2025-01-20, 2 days ago
    assert is_projection_eligible("2025-01-13", "week", NOW)
    # ended 2025-01-13, 9 days ago
    assert is_projection_eligible("2025-01-06", "week", NOW)
    # ended 2024-12-30, 23 days ago
    assert not is_projection_eligible("2024-12-23", "week", NOW)
    assert not is_projection_eligible("2025-01-01", "month", NOW)


def test_grace_window_is_configurable():
    assert is_projection_eligible("2024-12-23", "week", NOW, grace_days=30)
    assert not is_projection_eligible("2025-01-06", "week", NOW, grace_days=7)


def test_project_accumulator_eligible():
    acc = Accumulator(current=49, previous=80, trailing4_sum=160, trailing4_count=2)
    proj = project_accumulator(acc, "Wednesday", eligible=True)
    assert proj.projected == 100
    assert proj.wow == pytest.approx(25.0)
    assert proj.vs4 == pytest.approx(25.0)
    assert proj.delta_prev == pytest.approx(20.0)
    assert proj.vs12 is None
    assert proj.delta_vs12 is None


def test_project_accumulator_not_eligible_uses_actual():
    acc = Accumulator(current=49, previous=0)
    proj = project_accumulator(acc, "Wednesday", eligible=False)
    assert proj.projected == 49
    assert proj.wow == NEW


def test_pacing():
    assert pacing_vs_reference(49, 80, "Wednesday") == pytest.approx(25.0)
    assert pacing_vs_reference(49, 0, "Wednesday") is None
    assert pacing_status(None) == "No data"
    assert pacing_status(25) == "Well ahead"
    assert pacing_status(10) == "On track"
    assert pacing_status(0) == "Steady"
    assert pacing_status(-10) == "Behind"
    assert pacing_status(-50) == "Needs attention"
