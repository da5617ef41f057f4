import pandas as pd
from typing import Any, Dict, List, Optional
from .data_structures import PatternOutput
from .patterns.period_comparison import PeriodComparisonPattern
from .patterns.kpi_summary import KPISummaryPattern
from .caching_service import PatternCacheService
from .clock import SystemClock

# Control-state arguments each pattern accepts.
_KPI_CONTROLS = ("reference_mode", "rules", "now", "series_length", "grace_days", "metrics")
_COMPARISON_CONTROLS = (
    "reference_mode", "search", "top_n", "include_zero", "rules", "now",
    "series_length", "movers_limit", "grace_days",
)


class PatternsManager:
    """
    Orchestrates running the dashboard patterns on one row set.
    """

    def __init__(self, cache_svc: PatternCacheService, clock=None):
        self.cache_svc = cache_svc
        self.clock = clock or SystemClock()
        self.kpi_summary_pattern = KPISummaryPattern()
        self.period_comparison_pattern = PeriodComparisonPattern()

    def _run_cached(self, pattern, metric_id: str, data: pd.DataFrame,
                    analysis_window: Dict[str, str], controls: Dict[str, Any]) -> PatternOutput:
        cached_output = self.cache_svc.get_cached_pattern_result(
            metric_id,
            pattern.PATTERN_NAME,
            data,
            analysis_window,
            controls
        )
        if cached_output:
            return cached_output
        pattern_output = pattern.run(metric_id, data, analysis_window, **controls)
        self.cache_svc.store_pattern_result(pattern_output, data, controls)
        return pattern_output

    def run_patterns_for_metric(
        self,
        metric_id: str,
        data: pd.DataFrame,
        analysis_window: Dict[str, str],
        kpi_data: Optional[pd.DataFrame] = None,
        **controls
    ) -> List[PatternOutput]:
        """
        Given a metric and a MetricRow frame, run KPISummary and PeriodComparison
        and return their outputs.

        `kpi_data` lets the headline cards come from a different table than
        the breakdown (e.g. channel totals); it defaults to `data`.
        Results are cached on (metric, pattern, rows, control state), so a
        refresh with unchanged rows and controls returns the cached objects.
        When `now` is omitted it is read from the manager clock and becomes
        part of the control state.
        """
        if controls.get("now") is None:
            controls["now"] = self.clock.now()
        kpi_controls = {k: v for k, v in controls.items() if k in _KPI_CONTROLS}
        comparison_controls = {k: v for k, v in controls.items() if k in _COMPARISON_CONTROLS}

        outputs = [
            self._run_cached(
                self.kpi_summary_pattern,
                metric_id,
                kpi_data if kpi_data is not None else data,
                analysis_window,
                kpi_controls
            ),
            self._run_cached(
                self.period_comparison_pattern,
                metric_id,
                data,
                analysis_window,
                comparison_controls
            ),
        ]
        return outputs
