"""
Base Pattern Class

This module defines the base Pattern class that all analysis patterns should inherit from.
It provides standard structure, validation and empty-result handling.
"""

from typing import Dict, Any, List
import pandas as pd
from funnelview_app.intelligence_engine.data_structures import PatternOutput


class Pattern:
    """
    Base class for all analysis patterns.

    All patterns should inherit from this class and implement the `run` method.
    """

    PATTERN_NAME = "base_pattern"
    PATTERN_VERSION = "1.0"

    def run(self,
            metric_id: str,
            data: pd.DataFrame,
            analysis_window: Dict[str, str],
            **kwargs) -> PatternOutput:
        """
        Execute the pattern analysis and return a standardized PatternOutput.

        Parameters
        ----------
        metric_id : str
            The metric being analyzed ('sessions', 'demo_submit', 'vf_signup')
        data : pd.DataFrame
            MetricRow frame with columns period, dimension_value and the metrics
        analysis_window : Dict[str, str]
            Dictionary with keys:
            - 'grain': Time grain ('week', 'month')
            - 'start_date' / 'end_date': optional bounds in 'YYYY-MM-DD' format
        **kwargs
            Additional pattern-specific parameters

        Returns
        -------
        PatternOutput
            Standardized output object with pattern name, version, metric ID,
            analysis window, and results dictionary
        """
        return PatternOutput(
            pattern_name=self.PATTERN_NAME,
            pattern_version=self.PATTERN_VERSION,
            metric_id=metric_id,
            analysis_window=analysis_window,
            results={}
        )

    def validate_data(self, data: pd.DataFrame, required_columns: List[str]) -> bool:
        """
        Validate that the input DataFrame contains all required columns.

        Raises
        ------
        ValueError
            If any required column is missing
        """
        missing_columns = [col for col in required_columns if col not in data.columns]
        if missing_columns:
            raise ValueError(f"Missing required columns: {missing_columns}")
        return True

    def validate_analysis_window(self, analysis_window: Dict[str, str]) -> str:
        """
        Validate the analysis window and return its grain (defaults to 'week').

        Raises
        ------
        ValueError
            If the grain is not 'week' or 'month'
        """
        grain = analysis_window.get("grain", "week").lower()
        valid_grains = ["week", "month"]
        if grain not in valid_grains:
            raise ValueError(f"Invalid grain: {grain}. Must be one of {valid_grains}")
        return grain

    def filter_window(self, data: pd.DataFrame, analysis_window: Dict[str, str]) -> pd.DataFrame:
        """Keep rows whose period key falls inside the optional start/end bounds."""
        periods = data["period"].astype(str)
        mask = pd.Series(True, index=data.index)
        if analysis_window.get("start_date"):
            mask &= periods >= analysis_window["start_date"]
        if analysis_window.get("end_date"):
            mask &= periods <= analysis_window["end_date"]
        return data.loc[mask]

    def handle_empty_data(self, metric_id: str, analysis_window: Dict[str, str], results: Dict[str, Any]) -> PatternOutput:
        """
        Create a standardized PatternOutput for empty or insufficient data.
        `results` carries the pattern's empty shape so callers can render it.
        """
        return PatternOutput(
            pattern_name=self.PATTERN_NAME,
            pattern_version=self.PATTERN_VERSION,
            metric_id=metric_id,
            analysis_window=analysis_window,
            results={**results, "message": "No data for the selected period"}
        )
