# =============================================================================
# ComparativeAnalysis
#
# This module turns accumulators into comparison figures:
# - Percent change against the previous period and trailing averages
# - Absolute deltas
# - Share of total and share of change (top movers attribution)
# - Conversion rate and conversion-rate comparisons
#
# Every ratio checks its denominator; NaN / inf never leave this module.
#
# Dependencies:
#   - numpy as np
# =============================================================================

import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from funnelview_app.intelligence_engine.data_structures import (
    Accumulator,
    Comparison,
    ConversionComparison,
    Mover,
    PctValue,
)

NEW = "NEW"

# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None or not np.isfinite(value):
        return None
    return float(value)


def _safe_rate(numerator: float, denominator: Optional[float]) -> Optional[float]:
    """numerator / denominator * 100, or None when the denominator is not positive."""
    if denominator is None or denominator <= 0:
        return None
    return _finite_or_none(numerator / denominator * 100.0)


def _diff(current: Optional[float], base: Optional[float]) -> Optional[float]:
    if current is None or base is None:
        return None
    return _finite_or_none(current - base)


def pct_change(current: Optional[float], base: Optional[float]) -> PctValue:
    """
    Percent change of `current` against `base`.

    Returns
    -------
    float, "NEW" or None
        - (current - base) / base * 100 when base > 0
        - "NEW" when base == 0 and current > 0
        - 0.0 when both are 0
        - None when base is absent (no history) or negative

    Examples
    --------
    >>> pct_change(150, 100)
    50.0
    >>> pct_change(100, 0)
    'NEW'
    >>> pct_change(0, 0)
    0.0
    >>> pct_change(5, None) is None
    True
    """
    if base is None or current is None:
        return None
    if isinstance(base, float) and math.isnan(base):
        return None
    if base > 0:
        return _finite_or_none((current - base) / base * 100.0)
    if base == 0:
        if current > 0:
            return NEW
        if current == 0:
            return 0.0
    return None


# =============================================================================
# Main Functions: Comparisons
# =============================================================================

def compare(
    acc: Accumulator,
    total_current: float,
    total_delta: Optional[float],
    metric: str = "sessions"
) -> Comparison:
    """
    Compare one accumulator against its previous period and trailing averages.

    Parameters
    ----------
    acc : Accumulator
        Accumulator for one dimension value (or the summary accumulator).
    total_current : float
        Sum of `current` across all dimension values in the reference period.
    total_delta : Optional[float]
        Sum of period-over-period deltas across all dimension values.
    metric : str, default 'sessions'
        Metric being compared. Conversion rate is only defined for
        non-session metrics.

    Returns
    -------
    Comparison
    """
    avg4 = acc.avg4
    avg12 = acc.avg12
    delta_abs = _diff(acc.current, acc.previous)

    share_of_total = acc.current / total_current if total_current else 0.0
    if delta_abs is None or not total_delta:
        share_of_delta = None
    else:
        share_of_delta = _finite_or_none(delta_abs / total_delta)

    cvr = None if metric == "sessions" else _safe_rate(acc.current, acc.sessions_current)

    return Comparison(
        current=acc.current,
        previous=acc.previous,
        avg4=avg4,
        avg12=avg12,
        wow=pct_change(acc.current, acc.previous),
        vs4=pct_change(acc.current, avg4),
        vs12=pct_change(acc.current, avg12),
        delta_abs=delta_abs,
        delta_vs4=_diff(acc.current, avg4),
        delta_vs12=_diff(acc.current, avg12),
        share_of_total=float(share_of_total),
        share_of_delta=share_of_delta,
        cvr=cvr,
    )


def total_delta(accumulators: Dict[str, Accumulator]) -> Optional[float]:
    """Sum of defined deltas, or None when no accumulator has a previous value."""
    deltas = [a.current - a.previous for a in accumulators.values() if a.previous is not None]
    if not deltas:
        return None
    return float(sum(deltas))


def compare_all(accumulators: Dict[str, Accumulator], metric: str = "sessions") -> Dict[str, Comparison]:
    """Compare every accumulator, computing the shared totals once."""
    total_current = float(sum(a.current for a in accumulators.values()))
    delta = total_delta(accumulators)
    return {
        dim: compare(acc, total_current, delta, metric)
        for dim, acc in accumulators.items()
    }


def top_movers(accumulators: Dict[str, Accumulator], limit: int = 8) -> Tuple[List[Mover], List[Mover]]:
    """
    Split dimension values into top gainers and top losers by delta.

    Gainers are sorted by delta descending, losers by delta ascending (most
    negative first). Equal deltas keep their input order. Values without a
    previous period or with zero delta are not movers.

    Returns
    -------
    Tuple[List[Mover], List[Mover]]
        (gainers, losers), each truncated to `limit`.
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    delta_all = total_delta(accumulators)
    movers = []
    for dim, acc in accumulators.items():
        if acc.previous is None:
            continue
        delta = acc.current - acc.previous
        share = _finite_or_none(delta / delta_all) if delta_all else None
        movers.append(Mover(dimension_value=dim, delta=float(delta), share_of_delta=share))

    gainers = sorted((m for m in movers if m.delta > 0), key=lambda m: -m.delta)
    losers = sorted((m for m in movers if m.delta < 0), key=lambda m: m.delta)
    return gainers[:limit], losers[:limit]


# =============================================================================
# Conversion Rates
# =============================================================================

def compare_conversion(acc: Accumulator) -> ConversionComparison:
    """
    Compare the event-per-session conversion rate of the reference period
    against the previous period and the trailing windows. Window rates are
    pooled (window events / window sessions), not averages of weekly rates.
    """
    current_pct = _safe_rate(acc.current, acc.sessions_current)
    previous_pct = None
    if acc.previous is not None:
        previous_pct = _safe_rate(acc.previous, acc.sessions_previous)
    avg4_pct = _safe_rate(acc.trailing4_sum, acc.trailing4_sessions) if acc.trailing4_count else None
    avg12_pct = _safe_rate(acc.trailing12_sum, acc.trailing12_sessions) if acc.trailing12_count else None

    return ConversionComparison(
        current_pct=current_pct,
        previous_pct=previous_pct,
        avg4_pct=avg4_pct,
        avg12_pct=avg12_pct,
        wow=pct_change(current_pct, previous_pct),
        vs4=pct_change(current_pct, avg4_pct),
        vs12=pct_change(current_pct, avg12_pct),
    )
