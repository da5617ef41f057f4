import pytest
from funnelview_app.intelligence_engine.data_structures import Accumulator
from funnelview_app.intelligence_engine.primitives.ranking import rank_dimensions


def _accs(**totals):
    return {dim: Accumulator(current=value) for dim, value in totals.items()}


def test_ties_broken_alphabetically():
    accs = {"B": Accumulator(current=50), "C": Accumulator(current=30), "A": Accumulator(current=50)}
    assert rank_dimensions(accs, top_n=2) == ["A", "B"]


def test_zero_values_filtered_unless_requested():
    accs = _accs(google=10, bing=0, direct=5)
    assert rank_dimensions(accs) == ["google", "direct"]
    assert rank_dimensions(accs, include_zero=True) == ["google", "direct", "bing"]


def test_search_is_case_insensitive_substring():
    accs = {"google / cpc": Accumulator(current=10), "Google / organic": Accumulator(current=20),
            "bing / cpc": Accumulator(current=30)}
    assert rank_dimensions(accs, search="GOOG") == ["Google / organic", "google / cpc"]
    assert rank_dimensions(accs, search="") == ["bing / cpc", "Google / organic", "google / cpc"]
    assert rank_dimensions(accs, search="yahoo") == []


def test_top_n_bounds():
    accs = _accs(a=3, b=2, c=1)
    assert rank_dimensions(accs, top_n=0) == []
    assert rank_dimensions(accs, top_n=10) == ["a", "b", "c"]
    with pytest.raises(ValueError):
        rank_dimensions(accs, top_n=-1)


def test_empty_input():
    assert rank_dimensions({}) == []
