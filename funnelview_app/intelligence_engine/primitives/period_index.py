# =============================================================================
# PeriodIndex
#
# This module provides the period axis every comparison indexes into:
# - Ordered, de-duplicated period keys (most recent first)
# - Reference period selection (latest, latest complete, all-time)
# - Period boundaries for week and month grains
# - Period progress for the in-progress period
#
# Dependencies:
#   - pandas as pd
# =============================================================================

from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd

VALID_GRAINS = ("week", "month")

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class ReferenceMode(str, Enum):
    LATEST = "latest"
    LATEST_COMPLETE = "latest_complete"
    ALL_TIME = "all_time"


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _validate_grain(grain: str) -> str:
    grain = (grain or "").lower()
    if grain not in VALID_GRAINS:
        raise ValueError(f"Unsupported grain '{grain}'. Use one of {list(VALID_GRAINS)}.")
    return grain


def to_wall_clock(ts: Union[str, pd.Timestamp]) -> pd.Timestamp:
    """Drop timezone info, keeping the local wall-clock time."""
    ts = pd.Timestamp(ts)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


# =============================================================================
# Period keys
# =============================================================================

def build_period_index(rows: Union[pd.DataFrame, Iterable[str]], period_col: str = "period") -> List[str]:
    """
    Build the ordered list of distinct period keys present in a result set.

    Parameters
    ----------
    rows : pd.DataFrame or iterable of str
        Either a MetricRow frame (period keys read from `period_col`) or the
        keys themselves. Keys may be unsorted and duplicated.
    period_col : str, default 'period'
        Column holding the period key when `rows` is a DataFrame.

    Returns
    -------
    List[str]
        Distinct keys sorted descending by value (most recent first).

    Examples
    --------
    >>> build_period_index(["2025-01-06", "2025-01-13", "2025-01-06"])
    ['2025-01-13', '2025-01-06']
    """
    if isinstance(rows, pd.DataFrame):
        if rows.empty or period_col not in rows.columns:
            return []
        keys = rows[period_col].dropna().astype(str)
    else:
        keys = [str(k) for k in rows if k is not None]
    return sorted(set(keys), reverse=True)


def period_bounds(period_start: Union[str, pd.Timestamp], grain: str) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """
    Return (start, end) for the period beginning at `period_start`.
    `end` is exclusive. Week starts are rolled back to Monday.
    """
    grain = _validate_grain(grain)
    start = to_wall_clock(period_start).normalize()
    if grain == "week":
        start = start - pd.Timedelta(days=start.dayofweek)
        end = start + pd.Timedelta(days=7)
    else:
        start = start.replace(day=1)
        end = start + pd.offsets.MonthBegin(1)
    return start, end


def is_current_period(period_start: Union[str, pd.Timestamp], grain: str, now: pd.Timestamp) -> bool:
    start, end = period_bounds(period_start, grain)
    now = to_wall_clock(now)
    return start <= now < end


def weekday_name(now: pd.Timestamp) -> str:
    return WEEKDAY_NAMES[pd.Timestamp(now).dayofweek]


# =============================================================================
# Reference period selection
# =============================================================================

def select_reference_index(
    period_index: List[str],
    mode: Union[ReferenceMode, str],
    grain: str,
    now: pd.Timestamp
) -> Optional[int]:
    """
    Pick the index of the reference period in `period_index`.

    Parameters
    ----------
    period_index : List[str]
        Output of build_period_index (descending).
    mode : ReferenceMode or str
        LATEST uses the most recent period. LATEST_COMPLETE skips the most
        recent period when it is still in progress and an older one exists.
        ALL_TIME has no single reference period.
    grain : str
        'week' or 'month'.
    now : pd.Timestamp
        Current wall-clock time.

    Returns
    -------
    Optional[int]
        Index into period_index, or None for ALL_TIME or an empty index.
    """
    mode = ReferenceMode(mode)
    if not period_index or mode == ReferenceMode.ALL_TIME:
        return None
    if mode == ReferenceMode.LATEST:
        return 0
    if is_current_period(period_index[0], grain, now) and len(period_index) > 1:
        return 1
    return 0


# =============================================================================
# Period progress
# =============================================================================

def period_progress(period_start: Union[str, pd.Timestamp], grain: str, now: pd.Timestamp) -> float:
    """
    Percentage (0-100) of the period elapsed at `now`.

    Elapsed hours since the period start divided by the period length in hours
    (168 for a week, days-in-month * 24 for a month), clamped to [0, 100].
    Descriptive only; projection keys on the weekday name instead.
    """
    start, end = period_bounds(period_start, grain)
    now = to_wall_clock(now)
    total_hours = (end - start) / pd.Timedelta(hours=1)
    elapsed_hours = (now - start) / pd.Timedelta(hours=1)
    progress = elapsed_hours / total_hours * 100.0
    return float(min(100.0, max(0.0, progress)))


def progress_label(progress: float) -> str:
    """Weekday label for a week progress percentage."""
    if progress == 0:
        return "Week not started"
    thresholds = [(15, "Monday"), (30, "Tuesday"), (45, "Wednesday"), (60, "Thursday"), (75, "Friday"), (90, "Saturday")]
    for limit, label in thresholds:
        if progress < limit:
            return label
    return "Sunday"
