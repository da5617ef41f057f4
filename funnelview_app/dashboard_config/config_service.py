from typing import Dict, List, Tuple
from .config_models import DashboardConfig, DimensionDefinition, TableDefinition
from funnelview_app.core.exceptions import InvalidDimensionReference, InvalidTableReference
from funnelview_app.intelligence_engine.primitives.dimensional_aggregation import METRIC_COLUMNS
from funnelview_app.intelligence_engine.primitives.period_index import VALID_GRAINS


class DashboardConfigService:
    def __init__(self):
        self._config: DashboardConfig = DashboardConfig()
        self._tables_by_id: Dict[str, TableDefinition] = {}

    def load_config(self, config: DashboardConfig):
        self._config = config
        self._tables_by_id.clear()
        for t in config.tables:
            self._tables_by_id[t.id] = t

    def validate_config(self) -> bool:
        self._check_duplicate_ids()
        self._check_grains()
        self._check_metric_columns()
        self._check_dimension_fields()
        return True

    def _check_duplicate_ids(self):
        ids = self._config.get_table_ids()
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate table IDs found.")
        for t in self._config.tables:
            dim_ids = t.get_dimension_ids()
            if len(dim_ids) != len(set(dim_ids)):
                raise ValueError(f"Table '{t.id}' has duplicate dimension IDs.")

    def _check_grains(self):
        for t in [self._config.engine] + self._config.tables:
            if t.grain not in VALID_GRAINS:
                raise ValueError(f"Invalid grain '{t.grain}'. Must be one of {list(VALID_GRAINS)}")

    def _check_metric_columns(self):
        for t in self._config.tables:
            missing = [m for m in METRIC_COLUMNS if m not in t.metric_columns]
            if missing:
                raise ValueError(f"Table '{t.id}' is missing metric columns: {missing}")

    def _check_dimension_fields(self):
        for t in self._config.tables:
            for d in t.dimensions:
                if not d.fields:
                    raise InvalidDimensionReference(
                        f"Dimension '{d.id}' on table '{t.id}' has no fields."
                    )

    def get_table_by_id(self, table_id: str) -> TableDefinition:
        if table_id not in self._tables_by_id:
            raise InvalidTableReference(f"Table '{table_id}' is not defined.")
        return self._tables_by_id[table_id]

    def all_tables(self) -> List[TableDefinition]:
        return list(self._tables_by_id.values())

    def get_config(self) -> DashboardConfig:
        return self._config

    def resolve_dimension(self, dimension_id: str, grain: str = None) -> Tuple[TableDefinition, DimensionDefinition]:
        """
        Find the table serving `dimension_id` (first match in config order),
        optionally restricted to tables of one grain.
        """
        for t in self._config.tables:
            if grain is not None and t.grain != grain:
                continue
            for d in t.dimensions:
                if d.id == dimension_id:
                    return t, d
        raise InvalidDimensionReference(
            f"No table{' with grain ' + repr(grain) if grain else ''} provides dimension '{dimension_id}'."
        )
