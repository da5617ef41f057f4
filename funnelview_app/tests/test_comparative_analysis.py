import pytest
from funnelview_app.intelligence_engine.data_structures import Accumulator
from funnelview_app.intelligence_engine.primitives.comparative_analysis import (
    NEW,
    compare,
    compare_all,
    compare_conversion,
    pct_change,
    top_movers,
    total_delta,
)


def test_pct_change_branches():
    assert pct_change(150, 100) == pytest.approx(50.0)
    assert pct_change(0, 50) == pytest.approx(-100.0)
    assert pct_change(100, 0) == NEW
    assert pct_change(0, 0) == 0.0
    assert pct_change(5, None) is None
    assert pct_change(None, 5) is None
    assert pct_change(5, float("nan")) is None
    assert pct_change(5, -10) is None


def test_compare_against_previous_and_trailing_average():
    # current 100, previous 80, trailing window [80, 60] => avg4 = 70
    acc = Accumulator(current=100, previous=80, trailing4_sum=140, trailing4_count=2,
                      trailing12_sum=140, trailing12_count=2)
    cmp = compare(acc, total_current=100, total_delta=20)

    assert cmp.wow == pytest.approx(25.0)
    assert cmp.delta_abs == pytest.approx(20.0)
    assert cmp.avg4 == pytest.approx(70.0)
    assert cmp.vs4 == pytest.approx(42.857, abs=1e-3)
    assert cmp.delta_vs4 == pytest.approx(30.0)
    assert cmp.share_of_total == pytest.approx(1.0)
    assert cmp.share_of_delta == pytest.approx(1.0)
    assert cmp.cvr is None


def test_compare_without_history():
    acc = Accumulator(current=10)
    cmp = compare(acc, total_current=10, total_delta=None)
    assert cmp.wow is None
    assert cmp.vs4 is None
    assert cmp.vs12 is None
    assert cmp.delta_abs is None
    assert cmp.share_of_delta is None


def test_compare_zero_total_current():
    cmp = compare(Accumulator(current=0, previous=0), total_current=0, total_delta=0)
    assert cmp.share_of_total == 0.0
    assert cmp.share_of_delta is None
    assert cmp.wow == 0.0


def test_cvr_only_for_event_metrics():
    acc = Accumulator(current=5, previous=8, sessions_current=200, sessions_previous=160)
    assert compare(acc, 5, -3, metric="demo_submit").cvr == pytest.approx(2.5)
    assert compare(Accumulator(current=5), 5, None, metric="demo_submit").cvr is None


def test_shares_sum_to_one():
    accs = {
        "Google": Accumulator(current=100, previous=80),
        "Bing": Accumulator(current=50, previous=40),
        "Direct": Accumulator(current=50, previous=70),
    }
    comparisons = compare_all(accs)
    assert sum(c.share_of_total for c in comparisons.values()) == pytest.approx(1.0)
    # deltas: +20, +10, -20 => total +10
    assert total_delta(accs) == pytest.approx(10.0)
    assert sum(c.share_of_delta for c in comparisons.values()) == pytest.approx(1.0)
    assert comparisons["Google"].share_of_delta == pytest.approx(2.0)


def test_total_delta_none_without_previous():
    assert total_delta({"A": Accumulator(current=1)}) is None


def test_top_movers_ordering():
    accs = {
        "A": Accumulator(current=20, previous=10),   # +10
        "B": Accumulator(current=30, previous=20),   # +10
        "C": Accumulator(current=15, previous=10),   # +5
        "D": Accumulator(current=0, previous=40),    # -40
        "E": Accumulator(current=5, previous=10),    # -5
        "F": Accumulator(current=7, previous=7),     # 0
        "G": Accumulator(current=99),                # no history
    }
    gainers, losers = top_movers(accs)
    assert [m.dimension_value for m in gainers] == ["A", "B", "C"]
    assert [m.dimension_value for m in losers] == ["D", "E"]
    # total delta = 10 + 10 + 5 - 40 - 5 = -20
    assert losers[0].share_of_delta == pytest.approx(2.0)


def test_top_movers_limit():
    accs = {str(i): Accumulator(current=i + 1, previous=0) for i in range(12)}
    gainers, losers = top_movers(accs, limit=8)
    assert len(gainers) == 8
    assert gainers[0].dimension_value == "11"
    assert losers == []
    assert top_movers(accs, limit=0) == ([], [])
    with pytest.raises(ValueError):
        top_movers(accs, limit=-1)


def test_conversion_rates_are_pooled():
    # trailing events 8 + 2 over sessions 80 + 120 => 5%
    acc = Accumulator(current=5, previous=8, trailing4_sum=10, trailing4_count=2,
                      trailing12_sum=10, trailing12_count=2,
                      sessions_current=100, sessions_previous=80,
                      trailing4_sessions=200, trailing12_sessions=200)
    conv = compare_conversion(acc)
    assert conv.current_pct == pytest.approx(5.0)
    assert conv.previous_pct == pytest.approx(10.0)
    assert conv.avg4_pct == pytest.approx(5.0)
    assert conv.wow == pytest.approx(-50.0)
    assert conv.vs4 == pytest.approx(0.0)


def test_conversion_with_zero_sessions():
    conv = compare_conversion(Accumulator(current=3, previous=0, sessions_current=0, sessions_previous=0))
    assert conv.current_pct is None
    assert conv.previous_pct is None
    assert conv.wow is None
