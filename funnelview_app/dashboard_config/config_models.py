from dataclasses import dataclass, field
from typing import List


@dataclass
class DimensionDefinition:
    """A dimension a table can be broken down by, e.g. source / medium."""
    id: str
    label: str
    fields: List[str]   # table columns joined to form the dimension value
    separator: str = " / "


@dataclass
class TableDefinition:
    """
    A rolled-up view in the external store.
    """
    id: str
    label: str
    grain: str = "week"
    period_column: str = "week_start"
    metric_columns: List[str] = field(default_factory=lambda: ["sessions", "demo_submit", "vf_signup"])
    dimensions: List[DimensionDefinition] = field(default_factory=list)

    def get_dimension_ids(self) -> List[str]:
        return [d.id for d in self.dimensions]


@dataclass
class EngineSettings:
    grain: str = "week"
    timezone: str = "America/New_York"
    grace_days: int = 14
    series_length: int = 12
    history_periods: int = 14   # in-progress period + reference period + 12 trailing
    top_n: int = 20
    movers_limit: int = 8
    page_size: int = 1000
    max_pages: int = 200


@dataclass
class DashboardConfig:
    """
    A container for the engine settings and all table definitions.
    """
    engine: EngineSettings = field(default_factory=EngineSettings)
    tables: List[TableDefinition] = field(default_factory=list)

    def get_table_ids(self) -> List[str]:
        """Returns the list of all table IDs in the config."""
        return [t.id for t in self.tables]
