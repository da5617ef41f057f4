import pandas as pd

from funnelview_app.dashboard_config.config_models import DimensionDefinition, TableDefinition
from funnelview_app.intelligence_engine.primitives.dimensional_aggregation import (
    METRIC_COLUMNS,
    normalize_dimension_values,
)

METRIC_ROW_COLUMNS = ["period", "dimension_value"] + list(METRIC_COLUMNS)


def empty_metric_rows() -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype="object" if col in ("period", "dimension_value") else "float")
                         for col in METRIC_ROW_COLUMNS})


def to_metric_rows(raw: pd.DataFrame, table: TableDefinition, dimension: DimensionDefinition) -> pd.DataFrame:
    """
    Map a table's raw rows to the MetricRow frame.

    The dimension value joins the dimension's fields with its separator; null
    or blank parts become '(none)'. Period keys are normalized to YYYY-MM-DD
    and rows sharing (period, dimension_value) are summed.
    """
    if raw.empty:
        return empty_metric_rows()

    missing = [c for c in [table.period_column] + dimension.fields if c not in raw.columns]
    if missing:
        raise ValueError(f"Table '{table.id}' rows are missing columns: {missing}")

    parts = [normalize_dimension_values(raw[f]) for f in dimension.fields]
    dimension_value = parts[0]
    for part in parts[1:]:
        dimension_value = dimension_value + dimension.separator + part

    out = pd.DataFrame({
        "period": pd.to_datetime(raw[table.period_column]).dt.strftime("%Y-%m-%d"),
        "dimension_value": dimension_value,
    })
    for col in METRIC_COLUMNS:
        if col in raw.columns:
            out[col] = pd.to_numeric(raw[col], errors="coerce").fillna(0.0)
        else:
            out[col] = 0.0

    return out.groupby(["period", "dimension_value"], as_index=False, sort=False)[list(METRIC_COLUMNS)].sum()
