from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Union

# Percent-change value: a number, the "NEW" sentinel, or None when the base is absent.
PctValue = Union[float, str, None]


@dataclass
class PatternOutput:
    """
    A generic container for the result of a Pattern.
    """
    pattern_name: str
    pattern_version: str
    metric_id: str
    analysis_window: Dict[str, str]  # e.g. {"start_date": "...", "end_date": "...", "grain": "week"}
    results: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this object to a Python dict (e.g., for JSON serialization).
        """
        return {
            "pattern_name": self.pattern_name,
            "pattern_version": self.pattern_version,
            "metric_id": self.metric_id,
            "analysis_window": self.analysis_window,
            "results": self.results
        }


@dataclass
class Accumulator:
    """
    Per-dimension-value totals around a reference period.

    `previous` is None when the reference period is the oldest in the index.
    Trailing windows exclude the reference period and count only periods
    that exist in the index.
    """
    current: float = 0.0
    previous: Optional[float] = None
    trailing4_sum: float = 0.0
    trailing4_count: int = 0
    trailing12_sum: float = 0.0
    trailing12_count: int = 0
    sessions_current: float = 0.0
    sessions_previous: Optional[float] = None
    trailing4_sessions: float = 0.0
    trailing12_sessions: float = 0.0
    series: List[float] = field(default_factory=list)  # oldest -> newest

    @property
    def avg4(self) -> Optional[float]:
        return self.trailing4_sum / self.trailing4_count if self.trailing4_count > 0 else None

    @property
    def avg12(self) -> Optional[float]:
        return self.trailing12_sum / self.trailing12_count if self.trailing12_count > 0 else None


@dataclass
class Comparison:
    """Comparison figures for one accumulator against its reference windows."""
    current: float
    previous: Optional[float]
    avg4: Optional[float]
    avg12: Optional[float]
    wow: PctValue
    vs4: PctValue
    vs12: PctValue
    delta_abs: Optional[float]
    delta_vs4: Optional[float]
    delta_vs12: Optional[float]
    share_of_total: float
    share_of_delta: Optional[float]
    cvr: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentValue": self.current,
            "priorValue": self.previous,
            "avg4": self.avg4,
            "avg12": self.avg12,
            "wow": self.wow,
            "vs4": self.vs4,
            "vs12": self.vs12,
            "absoluteChange": self.delta_abs,
            "absoluteChangeVs4": self.delta_vs4,
            "absoluteChangeVs12": self.delta_vs12,
            "shareOfTotal": self.share_of_total,
            "shareOfDelta": self.share_of_delta,
            "cvr": self.cvr,
        }


@dataclass
class ConversionComparison:
    current_pct: Optional[float]
    previous_pct: Optional[float]
    avg4_pct: Optional[float]
    avg12_pct: Optional[float]
    wow: PctValue
    vs4: PctValue
    vs12: PctValue

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentPct": self.current_pct,
            "priorPct": self.previous_pct,
            "avg4Pct": self.avg4_pct,
            "avg12Pct": self.avg12_pct,
            "wow": self.wow,
            "vs4": self.vs4,
            "vs12": self.vs12,
        }


@dataclass
class Mover:
    dimension_value: str
    delta: float
    share_of_delta: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sliceValue": self.dimension_value,
            "absoluteChange": self.delta,
            "shareOfDelta": self.share_of_delta,
        }


@dataclass
class Projection:
    """Projected end-of-period total and the comparisons made against it."""
    eligible: bool
    weekday: str
    projected: float
    wow: PctValue
    vs4: PctValue
    vs12: PctValue
    delta_prev: Optional[float]
    delta_vs4: Optional[float]
    delta_vs12: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eligible": self.eligible,
            "weekday": self.weekday,
            "projectedValue": self.projected,
            "wow": self.wow,
            "vs4": self.vs4,
            "vs12": self.vs12,
            "absoluteChange": self.delta_prev,
            "absoluteChangeVs4": self.delta_vs4,
            "absoluteChangeVs12": self.delta_vs12,
        }
