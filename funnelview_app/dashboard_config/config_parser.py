import toml
from typing import Any, Dict
from .config_models import (
    DashboardConfig,
    DimensionDefinition,
    EngineSettings,
    TableDefinition,
)


def parse_dashboard_config_toml(toml_str: str) -> DashboardConfig:
    """
    Parse a TOML string of engine settings and table definitions.
    Example structure:

    [engine]
    grain = "week"
    grace_days = 14

    [[tables]]
    id = "wk_by_src_med"
    label = "Weekly by source / medium"
    period_column = "week_start"

    [[tables.dimensions]]
    id = "source_medium"
    label = "Source / Medium"
    fields = ["src", "med"]
    """
    data = toml.loads(toml_str)
    engine = _parse_engine(data.get("engine", {}))

    table_defs = []
    for raw_t in data.get("tables", []):
        table_defs.append(_parse_single_table(raw_t, engine.grain))

    return DashboardConfig(engine=engine, tables=table_defs)


def load_dashboard_config(path: str) -> DashboardConfig:
    with open(path, "r") as f:
        return parse_dashboard_config_toml(f.read())


def _parse_engine(raw_e: Dict[str, Any]) -> EngineSettings:
    defaults = EngineSettings()
    return EngineSettings(
        grain=raw_e.get("grain", defaults.grain),
        timezone=raw_e.get("timezone", defaults.timezone),
        grace_days=int(raw_e.get("grace_days", defaults.grace_days)),
        series_length=int(raw_e.get("series_length", defaults.series_length)),
        history_periods=int(raw_e.get("history_periods", defaults.history_periods)),
        top_n=int(raw_e.get("top_n", defaults.top_n)),
        movers_limit=int(raw_e.get("movers_limit", defaults.movers_limit)),
        page_size=int(raw_e.get("page_size", defaults.page_size)),
        max_pages=int(raw_e.get("max_pages", defaults.max_pages)),
    )


def _parse_single_table(raw_t: Dict[str, Any], default_grain: str) -> TableDefinition:
    table_id = raw_t["id"]

    dims_list = []
    for dim in raw_t.get("dimensions", []):
        dims_list.append(
            DimensionDefinition(
                id=dim["id"],
                label=dim.get("label", dim["id"]),
                fields=list(dim["fields"]),
                separator=dim.get("separator", " / ")
            )
        )

    return TableDefinition(
        id=table_id,
        label=raw_t.get("label", table_id),
        grain=raw_t.get("grain", default_grain),
        period_column=raw_t.get("period_column", "week_start"),
        metric_columns=list(raw_t.get("metric_columns", ["sessions", "demo_submit", "vf_signup"])),
        dimensions=dims_list
    )
