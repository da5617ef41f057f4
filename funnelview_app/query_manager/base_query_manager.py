import logging
import pandas as pd
from abc import ABC, abstractmethod
from typing import List, Optional

from funnelview_app.dashboard_config.config_models import DimensionDefinition, TableDefinition
from funnelview_app.intelligence_engine.primitives.ignore_rules import IgnoreRule
from .row_mapper import to_metric_rows

logger = logging.getLogger(__name__)


class BaseQueryManager(ABC):
    """
    An abstract class that describes the common interface for a Query Manager.
    """

    @abstractmethod
    def fetch_page(
        self, table: TableDefinition, periods: Optional[List[str]], offset: int, limit: int
    ) -> pd.DataFrame:
        """
        Return up to `limit` raw rows of `table` starting at `offset`, ordered by
        period descending. Optionally restricted to the given period keys.
        """
        pass

    @abstractmethod
    def fetch_recent_periods(self, table: TableDefinition, limit: int) -> List[str]:
        """
        Return up to `limit` distinct period keys of `table`, most recent first.
        """
        pass

    @abstractmethod
    def fetch_ignore_rules(self) -> List[IgnoreRule]:
        """
        Return the current ignore rules, newest first.
        """
        pass

    def fetch_all_rows(
        self,
        table: TableDefinition,
        periods: Optional[List[str]] = None,
        page_size: int = 1000,
        max_pages: int = 200
    ) -> pd.DataFrame:
        """
        Accumulate every page of `table`. Stops at the first short page, or
        after `max_pages` pages.
        """
        pages = []
        offset = 0
        for _ in range(max_pages):
            page = self.fetch_page(table, periods, offset, page_size)
            if page is None or page.empty:
                break
            pages.append(page)
            if len(page) < page_size:
                break
            offset += page_size
        else:
            logger.warning("Stopped paging %s after %d pages; rows may be incomplete", table.id, max_pages)

        if not pages:
            return pd.DataFrame()
        return pd.concat(pages, ignore_index=True)

    def fetch_metric_rows(
        self,
        table: TableDefinition,
        dimension: DimensionDefinition,
        history_periods: Optional[int] = None,
        page_size: int = 1000,
        max_pages: int = 200
    ) -> pd.DataFrame:
        """
        Fetch `table` (limited to its `history_periods` most recent periods when
        given) and map it to a MetricRow frame for `dimension`.
        """
        periods = None
        if history_periods is not None:
            periods = self.fetch_recent_periods(table, history_periods)
        raw = self.fetch_all_rows(table, periods, page_size, max_pages)
        rows = to_metric_rows(raw, table, dimension)
        logger.debug("Fetched %d raw rows from %s -> %d metric rows", len(raw), table.id, len(rows))
        return rows
