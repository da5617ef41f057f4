# =============================================================================
# DimensionalAggregation
#
# This module groups MetricRow frames into per-dimension-value accumulators:
# - Reference / previous period totals
# - Trailing 4- and 12-period sums and counts
# - All-time totals
# - The "all dimensions" summary accumulator
# - Period-aligned series for charts and sparklines
#
# A MetricRow frame has the columns:
#   period (str, YYYY-MM-DD), dimension_value (str), sessions, demo_submit, vf_signup
#
# Dependencies:
#   - pandas as pd
#   - numpy as np
# =============================================================================

import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from funnelview_app.intelligence_engine.data_structures import Accumulator

logger = logging.getLogger(__name__)

NONE_LABEL = "(none)"
METRIC_COLUMNS = ("sessions", "demo_submit", "vf_signup")
TRAILING_SHORT = 4
TRAILING_LONG = 12

# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def normalize_dimension_values(values: pd.Series) -> pd.Series:
    """Replace null or blank dimension values with the '(none)' sentinel."""
    as_text = values.where(values.notna(), "").astype(str).str.strip()
    return as_text.where(as_text != "", NONE_LABEL)


def _prepare_rows(rows: pd.DataFrame, metric: str) -> pd.DataFrame:
    """
    Validate a MetricRow frame and return a normalized copy holding only
    period, dimension_value, the chosen metric and sessions.
    """
    required = ["period", "dimension_value", metric, "sessions"]
    missing = [col for col in required if col not in rows.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    value_cols = list(dict.fromkeys([metric, "sessions"]))
    dff = rows[["period", "dimension_value"] + value_cols].copy()
    dff["period"] = dff["period"].astype(str)
    dff["dimension_value"] = normalize_dimension_values(dff["dimension_value"])
    for col in value_cols:
        dff[col] = pd.to_numeric(dff[col], errors="coerce").fillna(0.0)
    return dff


def _window_count(period_index: List[str], reference_idx: int, size: int) -> int:
    """Number of index periods inside the trailing window of `size`."""
    available = len(period_index) - reference_idx - 1
    return max(0, min(size, available))


def _series_periods(period_index: List[str], series_length: int) -> List[str]:
    """Most recent `series_length` periods, oldest first."""
    return list(reversed(period_index[:series_length]))


def _pivot(dff: pd.DataFrame, index_col: str, columns_col: str, value_col: str) -> pd.DataFrame:
    if dff.empty:
        return pd.DataFrame()
    return dff.pivot_table(
        index=index_col,
        columns=columns_col,
        values=value_col,
        aggfunc="sum",
        fill_value=0.0
    )


def _pivot_value(pivot: pd.DataFrame, row_key: str, col_key) -> float:
    if row_key not in pivot.index or col_key not in pivot.columns:
        return 0.0
    return float(pivot.at[row_key, col_key])


# =============================================================================
# Main Functions: Accumulators
# =============================================================================

def aggregate_dimensions(
    rows: pd.DataFrame,
    period_index: List[str],
    reference_idx: Optional[int],
    metric: str = "sessions",
    series_length: int = TRAILING_LONG
) -> Dict[str, Accumulator]:
    """
    Group MetricRows into one Accumulator per dimension value.

    Each row is placed by its position relative to the reference period:
    position 0 feeds `current`, position 1 feeds `previous`, positions 1..4
    feed the trailing-4 window and positions 1..12 the trailing-12 window.
    Duplicate (period, dimension_value) rows are summed.

    Parameters
    ----------
    rows : pd.DataFrame
        MetricRow frame. Not modified.
    period_index : List[str]
        Output of build_period_index (descending).
    reference_idx : Optional[int]
        Index of the reference period in `period_index`.
    metric : str, default 'sessions'
        Metric column to accumulate.
    series_length : int, default 12
        Number of most recent index periods kept in each accumulator's series.

    Returns
    -------
    Dict[str, Accumulator]
        Keyed by dimension value. Values with no rows in the reference period
        still appear when they have trailing history. Empty when
        `reference_idx` is out of range.

    Examples
    --------
    >>> rows = pd.DataFrame({
    ...     "period": ["2025-01-13", "2025-01-06"],
    ...     "dimension_value": ["Google", "Google"],
    ...     "sessions": [100, 80], "demo_submit": [0, 0], "vf_signup": [0, 0],
    ... })
    >>> accs = aggregate_dimensions(rows, ["2025-01-13", "2025-01-06"], 0)
    >>> accs["Google"].current, accs["Google"].previous
    (100.0, 80.0)
    """
    if reference_idx is None or reference_idx < 0 or reference_idx >= len(period_index):
        return {}

    dff = _prepare_rows(rows, metric)

    positions = {period: idx - reference_idx for idx, period in enumerate(period_index) if idx >= reference_idx}
    dff["position"] = dff["period"].map(positions)
    window = dff[dff["position"].notna() & (dff["position"] <= TRAILING_LONG)].copy()
    window["position"] = window["position"].astype(int)

    values = _pivot(window, "dimension_value", "position", metric)
    sessions = _pivot(window, "dimension_value", "position", "sessions")

    count4 = _window_count(period_index, reference_idx, TRAILING_SHORT)
    count12 = _window_count(period_index, reference_idx, TRAILING_LONG)
    has_previous = count12 > 0

    series_periods = _series_periods(period_index, series_length)
    series = _pivot(dff[dff["period"].isin(series_periods)], "dimension_value", "period", metric)

    accumulators: Dict[str, Accumulator] = {}
    for dim in values.index:
        short_cols = [p for p in values.columns if 1 <= p <= TRAILING_SHORT]
        long_cols = [p for p in values.columns if 1 <= p <= TRAILING_LONG]
        accumulators[dim] = Accumulator(
            current=_pivot_value(values, dim, 0),
            previous=_pivot_value(values, dim, 1) if has_previous else None,
            trailing4_sum=float(values.loc[dim, short_cols].sum()) if short_cols else 0.0,
            trailing4_count=count4,
            trailing12_sum=float(values.loc[dim, long_cols].sum()) if long_cols else 0.0,
            trailing12_count=count12,
            sessions_current=_pivot_value(sessions, dim, 0),
            sessions_previous=_pivot_value(sessions, dim, 1) if has_previous else None,
            trailing4_sessions=float(sessions.loc[dim, short_cols].sum()) if short_cols else 0.0,
            trailing12_sessions=float(sessions.loc[dim, long_cols].sum()) if long_cols else 0.0,
            series=[_pivot_value(series, dim, p) for p in series_periods],
        )

    logger.debug(
        "Aggregated %d dimension values for metric=%s reference=%s",
        len(accumulators), metric, period_index[reference_idx]
    )
    return accumulators


def aggregate_all_time(
    rows: pd.DataFrame,
    period_index: List[str],
    metric: str = "sessions",
    series_length: int = TRAILING_LONG
) -> Dict[str, Accumulator]:
    """
    Sum every period into `current` for each dimension value.

    There is no reference period, so `previous` is None and both trailing
    windows are empty, which suppresses all period-over-period comparisons.
    """
    if not period_index:
        return {}

    dff = _prepare_rows(rows, metric)
    dff = dff[dff["period"].isin(period_index)]
    totals = dff.groupby("dimension_value")[list(dict.fromkeys([metric, "sessions"]))].sum()

    series_periods = _series_periods(period_index, series_length)
    series = _pivot(dff[dff["period"].isin(series_periods)], "dimension_value", "period", metric)

    return {
        dim: Accumulator(
            current=float(totals.at[dim, metric]),
            sessions_current=float(totals.at[dim, "sessions"]),
            series=[_pivot_value(series, dim, p) for p in series_periods],
        )
        for dim in totals.index
    }


def summarize_totals(accumulators: Dict[str, Accumulator]) -> Accumulator:
    """
    Collapse all accumulators into the "all dimensions" summary accumulator.

    Every additive field is summed, so the summary `current` always equals the
    sum of `current` over dimension values. Window counts are shared by all
    accumulators of one aggregation and are carried over as-is.
    """
    if not accumulators:
        return Accumulator()

    accs = list(accumulators.values())
    has_previous = any(a.previous is not None for a in accs)
    series_len = max(len(a.series) for a in accs)
    series = np.zeros(series_len)
    for a in accs:
        if len(a.series) == series_len:
            series += np.asarray(a.series, dtype=float)

    return Accumulator(
        current=float(sum(a.current for a in accs)),
        previous=float(sum(a.previous or 0.0 for a in accs)) if has_previous else None,
        trailing4_sum=float(sum(a.trailing4_sum for a in accs)),
        trailing4_count=max(a.trailing4_count for a in accs),
        trailing12_sum=float(sum(a.trailing12_sum for a in accs)),
        trailing12_count=max(a.trailing12_count for a in accs),
        sessions_current=float(sum(a.sessions_current for a in accs)),
        sessions_previous=float(sum(a.sessions_previous or 0.0 for a in accs)) if has_previous else None,
        trailing4_sessions=float(sum(a.trailing4_sessions for a in accs)),
        trailing12_sessions=float(sum(a.trailing12_sessions for a in accs)),
        series=series.tolist(),
    )


# =============================================================================
# Series
# =============================================================================

def build_series(
    rows: pd.DataFrame,
    dimension_values: List[str],
    periods: List[str],
    metric: str = "sessions"
) -> Dict[str, List[float]]:
    """
    Per-dimension-value series aligned to the caller-supplied `periods`.
    Periods with no rows contribute 0.
    """
    if not dimension_values:
        return {}
    dff = _prepare_rows(rows, metric)
    dff = dff[dff["dimension_value"].isin(dimension_values) & dff["period"].isin(periods)]
    pivot = _pivot(dff, "dimension_value", "period", metric)
    return {dim: [_pivot_value(pivot, dim, p) for p in periods] for dim in dimension_values}


def build_stacked_totals(
    rows: pd.DataFrame,
    dimension_values: List[str],
    periods: List[str],
    metric: str = "sessions"
) -> List[float]:
    """Sum of the given dimension values per period, aligned to `periods`."""
    per_dim = build_series(rows, dimension_values, periods, metric)
    if not per_dim:
        return [0.0 for _ in periods]
    return np.sum(np.array(list(per_dim.values()), dtype=float), axis=0).tolist()
