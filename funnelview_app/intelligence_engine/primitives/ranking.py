# =============================================================================
# Ranking
#
# Selects the dimension values shown in tables, stacked series and sparklines.
# All three views must use the list returned by rank_dimensions for a given
# control state.
#
# Dependencies:
#   - none beyond the accumulator data structures
# =============================================================================

from typing import Dict, List

from funnelview_app.intelligence_engine.data_structures import Accumulator


def rank_dimensions(
    accumulators: Dict[str, Accumulator],
    search: str = "",
    top_n: int = 20,
    include_zero: bool = False
) -> List[str]:
    """
    Rank dimension values by current-period magnitude.

    Parameters
    ----------
    accumulators : Dict[str, Accumulator]
        Output of aggregate_dimensions / aggregate_all_time.
    search : str, default ''
        Case-insensitive substring filter on the dimension value; empty
        means no filter.
    top_n : int, default 20
        Maximum number of values returned.
    include_zero : bool, default False
        Keep values whose current total is 0.

    Returns
    -------
    List[str]
        Dimension values sorted by `current` descending, ties broken
        alphabetically.

    Raises
    ------
    ValueError
        If top_n is negative.

    Examples
    --------
    >>> from funnelview_app.intelligence_engine.data_structures import Accumulator
    >>> accs = {"B": Accumulator(current=50), "A": Accumulator(current=50), "C": Accumulator(current=30)}
    >>> rank_dimensions(accs, top_n=2)
    ['A', 'B']
    """
    if top_n is None or top_n < 0:
        raise ValueError(f"top_n must be a non-negative integer, got {top_n}")

    needle = (search or "").strip().lower()
    candidates = [
        (dim, acc.current)
        for dim, acc in accumulators.items()
        if (not needle or needle in dim.lower()) and (include_zero or acc.current != 0)
    ]
    candidates.sort(key=lambda item: (-item[1], item[0]))
    return [dim for dim, _ in candidates[:top_n]]
