# =============================================================================
# Projection
#
# Extrapolates an in-progress week to a full-week total using a fixed
# weekday activity curve, and derives projected comparisons and pacing.
#
# Dependencies:
#   - pandas as pd
# =============================================================================

import math
from typing import Dict, Optional, Union

import pandas as pd

from funnelview_app.intelligence_engine.data_structures import Accumulator, Projection
from funnelview_app.intelligence_engine.primitives.comparative_analysis import pct_change
from funnelview_app.intelligence_engine.primitives.period_index import (
    to_wall_clock,
    is_current_period,
    period_bounds,
)

DEFAULT_GRACE_DAYS = 14

# Typical share of a week's total accumulated by the end of each weekday.
CUMULATIVE_WEEK_SHARE: Dict[str, float] = {
    "Monday": 0.17,
    "Tuesday": 0.34,
    "Wednesday": 0.49,
    "Thursday": 0.63,
    "Friday": 0.73,
    "Saturday": 0.87,
    "Sunday": 1.00,
}

WEEKDAY_MULTIPLIERS: Dict[str, float] = {day: 1.0 / share for day, share in CUMULATIVE_WEEK_SHARE.items()}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def project(cumulative_so_far: float, weekday: str) -> int:
    """
    Project a full-week total from the cumulative value through `weekday`.

    Unknown weekday names use a multiplier of 1.0.

    Examples
    --------
    >>> project(170, "Monday")
    1000
    >>> project(250, "Sunday")
    250
    """
    multiplier = WEEKDAY_MULTIPLIERS.get(weekday, 1.0)
    return _round_half_up(cumulative_so_far * multiplier)


def is_projection_eligible(
    period_start: Union[str, pd.Timestamp],
    grain: str,
    now: pd.Timestamp,
    grace_days: int = DEFAULT_GRACE_DAYS
) -> bool:
    """
    True when the period is in progress or ended within the last `grace_days`.
    Only weekly periods are projected.
    """
    if grain != "week":
        return False
    if is_current_period(period_start, grain, now):
        return True
    start, end = period_bounds(period_start, grain)
    now = to_wall_clock(now)
    return end <= now < end + pd.Timedelta(days=grace_days)


def project_accumulator(acc: Accumulator, weekday: str, eligible: bool) -> Projection:
    """
    Projected total for an accumulator and its comparisons.

    When not eligible the projected total is the actual `current` value, so
    projected comparisons equal the actual ones.
    """
    projected = float(project(acc.current, weekday)) if eligible else acc.current
    avg4 = acc.avg4
    avg12 = acc.avg12
    return Projection(
        eligible=eligible,
        weekday=weekday,
        projected=projected,
        wow=pct_change(projected, acc.previous),
        vs4=pct_change(projected, avg4),
        vs12=pct_change(projected, avg12),
        delta_prev=projected - acc.previous if acc.previous is not None else None,
        delta_vs4=projected - avg4 if avg4 is not None else None,
        delta_vs12=projected - avg12 if avg12 is not None else None,
    )


# =============================================================================
# Pacing
# =============================================================================

def pacing_vs_reference(cumulative_so_far: float, reference_total: Optional[float], weekday: str) -> Optional[float]:
    """Projected total vs. a reference total (e.g. last week), in percent."""
    if not reference_total:
        return None
    projected = project(cumulative_so_far, weekday)
    return (projected - reference_total) / reference_total * 100.0


def pacing_status(pace_pct: Optional[float]) -> str:
    if pace_pct is None:
        return "No data"
    if pace_pct > 20:
        return "Well ahead"
    if pace_pct > 5:
        return "On track"
    if pace_pct > -5:
        return "Steady"
    if pace_pct > -20:
        return "Behind"
    return "Needs attention"
