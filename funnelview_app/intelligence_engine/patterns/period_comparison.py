# intelligence_engine/patterns/period_comparison.py

"""
Pattern: PeriodComparison
Version: 1.0

Purpose:
  Breaks a metric down by one dimension (channel, source, campaign, ...) for a
  reference period and compares every dimension value against the previous
  period and the trailing 4- and 12-period averages. Ranks the values, builds
  the chart and sparkline series for the ranked set, and attributes the total
  period-over-period change to the top gainers and losers.

Inputs:
  data (pd.DataFrame): MetricRow frame. Required columns:
    - 'period' (str): Period start key, 'YYYY-MM-DD'.
    - 'dimension_value' (str): Value of the dimension for the row.
    - 'sessions' (float) and the analyzed metric column.
  metric_id (str): Metric column to analyze.
  analysis_window (dict): 'grain' plus optional 'start_date' / 'end_date'.

Output Format:
{
  "schemaVersion": "1.0.0",
  "patternName": "PeriodComparison",
  "metricId": "sessions",
  "grain": "week" | "month",
  "referenceMode": "latest" | "latest_complete" | "all_time",
  "evaluationTime": "YYYY-MM-DD HH:mm:ss",

  "periods": ["YYYY-MM-DD", ...],        // most recent first
  "referencePeriod": "YYYY-MM-DD" | null,
  "comparePeriod": "YYYY-MM-DD" | null,

  "summary": {...},                      // all dimension values combined
  "projection": {...} | null,            // summary projection
  "progress": {"percent": float, "label": str | null, "isCurrentPeriod": bool} | null,

  "rows": [{"rank": int, "sliceValue": str, ...comparison fields, "sparkline": [...]}],
  "topGainers": [...],
  "topLosers": [...],

  "sparklinePeriods": [...],             // oldest first
  "seriesPeriods": [...],                // oldest first
  "series": {"<sliceValue>": [...]},
  "stackedSeries": [...]
}
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from funnelview_app.intelligence_engine.clock import SystemClock
from funnelview_app.intelligence_engine.data_structures import PatternOutput
from funnelview_app.intelligence_engine.primitives.comparative_analysis import (
    compare,
    compare_all,
    top_movers,
    total_delta,
)
from funnelview_app.intelligence_engine.primitives.dimensional_aggregation import (
    aggregate_all_time,
    aggregate_dimensions,
    build_series,
    build_stacked_totals,
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
    project_accumulator,
)
from funnelview_app.intelligence_engine.primitives.ranking import rank_dimensions
from .base_pattern import Pattern

logger = logging.getLogger(__name__)


class PeriodComparisonPattern(Pattern):
    """
    Dimension breakdown of one metric around a reference period.
    """

    PATTERN_NAME = "PeriodComparison"
    PATTERN_VERSION = "1.0.0"

    def run(
        self,
        metric_id: str,
        data: pd.DataFrame,
        analysis_window: Dict[str, str],
        reference_mode: str = ReferenceMode.LATEST,
        search: str = "",
        top_n: int = 20,
        include_zero: bool = False,
        rules: Optional[List[IgnoreRule]] = None,
        now: Optional[pd.Timestamp] = None,
        series_length: int = 12,
        movers_limit: int = 8,
        grace_days: int = DEFAULT_GRACE_DAYS
    ) -> PatternOutput:
        """
        Execute the period comparison.

        Parameters
        ----------
        metric_id : str
            Metric column to analyze.
        data : pd.DataFrame
            MetricRow frame (one grain).
        analysis_window : Dict[str, str]
            'grain' ('week' or 'month') and optional 'start_date' / 'end_date'.
        reference_mode : str, default 'latest'
            'latest', 'latest_complete' or 'all_time'.
        search : str, default ''
            Case-insensitive substring filter for ranked rows.
        top_n : int, default 20
            Number of ranked rows.
        include_zero : bool, default False
            Keep rows whose current value is 0.
        rules : List[IgnoreRule], optional
            Dimension values matching a rule are removed before aggregation.
        now : pd.Timestamp, optional
            Wall-clock time; defaults to SystemClock().now().
        series_length : int, default 12
            Periods per sparkline.
        movers_limit : int, default 8
            Entries in each of topGainers / topLosers.
        grace_days : int, default 14
            Days after a week ends during which it is still projected.

        Returns
        -------
        PatternOutput
        """
        grain = self.validate_analysis_window(analysis_window)
        self.validate_data(data, ["period", "dimension_value", metric_id, "sessions"])
        mode = ReferenceMode(reference_mode)
        now = pd.Timestamp(now) if now is not None else SystemClock().now()

        rows = exclude_ignored(self.filter_window(data, analysis_window), rules or [])
        periods = build_period_index(rows)
        ref_idx = select_reference_index(periods, mode, grain, now)

        if mode == ReferenceMode.ALL_TIME:
            accumulators = aggregate_all_time(rows, periods, metric_id, series_length)
        else:
            accumulators = aggregate_dimensions(rows, periods, ref_idx, metric_id, series_length)

        header = {
            "schemaVersion": "1.0.0",
            "patternName": self.PATTERN_NAME,
            "metricId": metric_id,
            "grain": grain,
            "referenceMode": mode.value,
            "evaluationTime": now.strftime("%Y-%m-%d %H:%M:%S"),
            "periods": periods,
            "referencePeriod": periods[ref_idx] if ref_idx is not None else None,
            "comparePeriod": periods[ref_idx + 1] if ref_idx is not None and ref_idx + 1 < len(periods) else None,
        }

        if not accumulators:
            logger.info("No rows to compare for metric=%s grain=%s", metric_id, grain)
            return self.handle_empty_data(metric_id, analysis_window, {
                **header,
                "summary": None,
                "projection": None,
                "progress": None,
                "rows": [],
                "topGainers": [],
                "topLosers": [],
                "sparklinePeriods": [],
                "seriesPeriods": [],
                "series": {},
                "stackedSeries": [],
            })

        comparisons = compare_all(accumulators, metric_id)
        summary_acc = summarize_totals(accumulators)
        summary = compare(summary_acc, summary_acc.current, total_delta(accumulators), metric_id)

        ranked = rank_dimensions(accumulators, search=search, top_n=top_n, include_zero=include_zero)
        ranked_rows = []
        for rank, dim in enumerate(ranked, start=1):
            acc = accumulators[dim]
            ranked_rows.append({
                "rank": rank,
                "sliceValue": dim,
                **comparisons[dim].to_dict(),
                "sessionsCurrent": acc.sessions_current,
                "sparkline": acc.series,
            })

        gainers, losers = top_movers(accumulators, limit=movers_limit)

        chart_periods = list(reversed(periods))
        projection = None
        progress = None
        if ref_idx is not None:
            ref_period = periods[ref_idx]
            eligible = is_projection_eligible(ref_period, grain, now, grace_days)
            projection = project_accumulator(summary_acc, weekday_name(now), eligible).to_dict()
            percent = period_progress(ref_period, grain, now)
            progress = {
                "percent": percent,
                "label": progress_label(percent) if grain == "week" else None,
                "isCurrentPeriod": is_current_period(ref_period, grain, now),
            }

        results: Dict[str, Any] = {
            **header,
            "summary": {"sliceValue": "All", **summary.to_dict(), "sessionsCurrent": summary_acc.sessions_current},
            "projection": projection,
            "progress": progress,
            "rows": ranked_rows,
            "topGainers": [m.to_dict() for m in gainers],
            "topLosers": [m.to_dict() for m in losers],
            "sparklinePeriods": list(reversed(periods[:series_length])),
            "seriesPeriods": chart_periods,
            "series": build_series(rows, ranked, chart_periods, metric_id),
            "stackedSeries": build_stacked_totals(rows, ranked, chart_periods, metric_id),
        }

        return PatternOutput(
            pattern_name=self.PATTERN_NAME,
            pattern_version=self.PATTERN_VERSION,
            metric_id=metric_id,
            analysis_window=analysis_window,
            results=results
        )
