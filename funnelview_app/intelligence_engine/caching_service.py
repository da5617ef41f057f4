from typing import Any, Dict, Hashable, Optional, Tuple

import pandas as pd

from .data_structures import PatternOutput

CacheKey = Tuple[str, str, str, Hashable]


def fingerprint_rows(data: pd.DataFrame) -> str:
    """
    Content hash of a row set. Two frames with the same rows in the same
    order share a fingerprint regardless of object identity.
    """
    if data.empty:
        return f"empty:{','.join(map(str, data.columns))}"
    row_hashes = pd.util.hash_pandas_object(data, index=False)
    return f"{len(data)}:{int(row_hashes.sum()) & 0xFFFFFFFFFFFFFFFF:x}"


def _freeze(value: Any) -> Hashable:
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple, set)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


def control_key(analysis_window: Dict[str, str], controls: Dict[str, Any]) -> Hashable:
    """Hashable form of the analysis window plus every control-state argument."""
    return _freeze({"analysis_window": analysis_window, **controls})


class PatternCacheService:
    """
    In-memory caching for pattern outputs, keyed by:
     (metric_id, pattern_name, row-set fingerprint, control state)

    The patterns themselves hold no state; this is the only memoization layer.
    """

    def __init__(self):
        self._cache: Dict[CacheKey, PatternOutput] = {}

    def _key(self, metric_id: str, pattern_name: str, data: pd.DataFrame,
             analysis_window: Dict[str, str], controls: Dict[str, Any]) -> CacheKey:
        return (metric_id, pattern_name, fingerprint_rows(data), control_key(analysis_window, controls))

    def store_pattern_result(self, pattern_output: PatternOutput, data: pd.DataFrame, controls: Dict[str, Any]):
        key = self._key(
            pattern_output.metric_id,
            pattern_output.pattern_name,
            data,
            pattern_output.analysis_window,
            controls
        )
        self._cache[key] = pattern_output

    def get_cached_pattern_result(
        self,
        metric_id: str,
        pattern_name: str,
        data: pd.DataFrame,
        analysis_window: Dict[str, str],
        controls: Dict[str, Any]
    ) -> Optional[PatternOutput]:
        key = self._key(metric_id, pattern_name, data, analysis_window, controls)
        return self._cache.get(key, None)

    def clear(self):
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
