import os
import pandas as pd
from typing import List, Optional

from funnelview_app.dashboard_config.config_models import TableDefinition
from funnelview_app.intelligence_engine.primitives.ignore_rules import IgnoreRule
from .base_query_manager import BaseQueryManager

IGNORE_RULES_FILE = "source_ignore_rules.csv"


class LocalCSVQueryManager(BaseQueryManager):
    """
    Reads local CSV files, one per table id ({table_id}.csv), plus
    source_ignore_rules.csv with columns [id, pattern, is_glob, is_regex, notes].
    """

    def __init__(self, data_folder: str):
        """
        :param data_folder: directory that holds the CSV files
        """
        self.data_folder = data_folder

    def fetch_page(
        self, table: TableDefinition, periods: Optional[List[str]], offset: int, limit: int
    ) -> pd.DataFrame:
        df = self._read_csv(table)
        if periods is not None:
            df = df[df["_period_key"].isin(periods)]
        return df.iloc[offset:offset + limit].drop(columns=["_period_key"]).reset_index(drop=True)

    def fetch_recent_periods(self, table: TableDefinition, limit: int) -> List[str]:
        df = self._read_csv(table)
        return list(df["_period_key"].drop_duplicates().head(limit))

    def fetch_ignore_rules(self) -> List[IgnoreRule]:
        csv_path = os.path.join(self.data_folder, IGNORE_RULES_FILE)
        if not os.path.exists(csv_path):
            return []

        df = pd.read_csv(csv_path, dtype={"pattern": str, "notes": str})
        rules = []
        for _, row in df.iterrows():
            if pd.isna(row.get("pattern")) or not str(row["pattern"]):
                continue
            rules.append(IgnoreRule(
                id=int(row["id"]) if "id" in row and pd.notna(row["id"]) else None,
                pattern=str(row["pattern"]),
                is_glob=_as_bool(row.get("is_glob", False)),
                is_regex=_as_bool(row.get("is_regex", False)),
                notes="" if pd.isna(row.get("notes")) else str(row.get("notes")),
            ))
        return rules

    def _read_csv(self, table: TableDefinition) -> pd.DataFrame:
        csv_path = os.path.join(self.data_folder, f"{table.id}.csv")
        if not os.path.exists(csv_path):
            raise FileNotFoundError(f"No CSV found for table '{table.id}' at {csv_path}")

        df = pd.read_csv(csv_path)
        if table.period_column not in df.columns:
            raise ValueError(f"Period column '{table.period_column}' not found in CSV for table {table.id}.")
        df["_period_key"] = pd.to_datetime(df[table.period_column]).dt.strftime("%Y-%m-%d")
        df.sort_values("_period_key", ascending=False, inplace=True, kind="mergesort")
        return df.reset_index(drop=True)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "t"}
    if pd.isna(value):
        return False
    return bool(value)
