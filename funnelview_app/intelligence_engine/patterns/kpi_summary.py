# intelligence_engine/patterns/kpi_summary.py

"""
Pattern: KPISummary
Version: 1.0

Purpose:
  Headline cards for the dashboard: for each metric, the total across every
  dimension value in the reference period, compared with the previous period
  and the trailing averages, the projected end-of-week total with pacing, and
  for event metrics the conversion rate against sessions.

Output Format:
{
  "schemaVersion": "1.0.0",
  "patternName": "KPISummary",
  "grain": "week" | "month",
  "referenceMode": "...",
  "periods": [...],
  "referencePeriod": "YYYY-MM-DD" | null,
  "progress": {...} | null,
  "metrics": {
    "<metric>": {
      "summary": {...},
      "projection": {...} | null,
      "pacing": {"percent": float | null, "status": str},
      "conversion": {...} | null,
      "history": [...]          // oldest first
    }
  }
}
"""

from typing import Dict, List, Optional

import pandas as pd

from funnelview_app.intelligence_engine.clock import SystemClock
from funnelview_app.intelligence_engine.data_structures import PatternOutput
from funnelview_app.intelligence_engine.primitives.comparative_analysis import (
    compare,
    compare_conversion,
)
from funnelview_app.intelligence_engine.primitives.dimensional_aggregation import (
    METRIC_COLUMNS,
    aggregate_all_time,
    aggregate_dimensions,
    summarize_totals,
)
from funnelview_app.intelligence_engine.primitives.ignore_rules import IgnoreRule, exclude_ignored
from funnelview_app.intelligence_engine.primitives.period_index import (
    ReferenceMode,
    build_period_index,
    is_current_period,
    period_progress,
    progress_label,
    select_reference_index,
    weekday_name,
)
from funnelview_app.intelligence_engine.primitives.projection import (
    DEFAULT_GRACE_DAYS,
    is_projection_eligible,
    pacing_status,
    pacing_vs_reference,
    project_accumulator,
)
from .base_pattern import Pattern


class KPISummaryPattern(Pattern):
    """
    All-dimension totals for each metric, with projection and conversion.
    """

    PATTERN_NAME = "KPISummary"
    PATTERN_VERSION = "1.0.0"

    def run(
        self,
        metric_id: str,
        data: pd.DataFrame,
        analysis_window: Dict[str, str],
        reference_mode: str = ReferenceMode.LATEST_COMPLETE,
        metrics: Optional[List[str]] = None,
        rules: Optional[List[IgnoreRule]] = None,
        now: Optional[pd.Timestamp] = None,
        series_length: int = 12,
        grace_days: int = DEFAULT_GRACE_DAYS
    ) -> PatternOutput:
        grain = self.validate_analysis_window(analysis_window)
        metrics = list(metrics or METRIC_COLUMNS)
        self.validate_data(data, ["period", "dimension_value", "sessions"] + metrics)
        mode = ReferenceMode(reference_mode)
        now = pd.Timestamp(now) if now is not None else SystemClock().now()

        rows = exclude_ignored(self.filter_window(data, analysis_window), rules or [])
        periods = build_period_index(rows)
        ref_idx = select_reference_index(periods, mode, grain, now)
        ref_period = periods[ref_idx] if ref_idx is not None else None

        results = {
            "schemaVersion": "1.0.0",
            "patternName": self.PATTERN_NAME,
            "grain": grain,
            "referenceMode": mode.value,
            "evaluationTime": now.strftime("%Y-%m-%d %H:%M:%S"),
            "periods": periods,
            "referencePeriod": ref_period,
            "progress": None,
            "metrics": {},
        }
        if not periods:
            return self.handle_empty_data(metric_id, analysis_window, results)

        eligible = False
        weekday = weekday_name(now)
        if ref_period is not None:
            eligible = is_projection_eligible(ref_period, grain, now, grace_days)
            percent = period_progress(ref_period, grain, now)
            results["progress"] = {
                "percent": percent,
                "label": progress_label(percent) if grain == "week" else None,
                "isCurrentPeriod": is_current_period(ref_period, grain, now),
            }

        for metric in metrics:
            if mode == ReferenceMode.ALL_TIME:
                accumulators = aggregate_all_time(rows, periods, metric, series_length)
            else:
                accumulators = aggregate_dimensions(rows, periods, ref_idx, metric, series_length)
            total = summarize_totals(accumulators)
            delta = total.current - total.previous if total.previous is not None else None

            projection = None
            pace = None
            if ref_period is not None:
                projection = project_accumulator(total, weekday, eligible).to_dict()
                if eligible:
                    pace = pacing_vs_reference(total.current, total.previous, weekday)

            results["metrics"][metric] = {
                "summary": compare(total, total.current, delta, metric).to_dict(),
                "projection": projection,
                "pacing": {"percent": pace, "status": pacing_status(pace)},
                "conversion": None if metric == "sessions" else compare_conversion(total).to_dict(),
                "history": total.series,
            }

        return PatternOutput(
            pattern_name=self.PATTERN_NAME,
            pattern_version=self.PATTERN_VERSION,
            metric_id=metric_id,
            analysis_window=analysis_window,
            results=results
        )
