import logging
from typing import ContextManager, Optional
import pandas as pd

from .analytics import SetComparisonMixin, RankingMixin, TrendMixin
from property_reports.config import DB_PATH, ReportParameters
from property_reports.database import ReportsDB, get_db

logger = logging.getLogger(__name__)

class PropertyReports(SetComparisonMixin, RankingMixin, TrendMixin):
    """
    Unified entry point for the property sales report catalog.
    Every report is a read-only query; most run entirely in SQL, the
    sales-ratio statistics are finished in pandas.
    """

    def __init__(
        self,
        db_path: str = DB_PATH,
        params: Optional[ReportParameters] = None,
        db: Optional[ReportsDB] = None,
    ):
        self.db_path = db_path
        self.params = params or ReportParameters()
        self._db = db

    def _connect(self) -> ContextManager[ReportsDB]:
        if self._db is not None:
            return self._db
        return get_db(self.db_path)

    def _query(self, sql: str, params=()) -> pd.DataFrame:
        with self._connect() as db:
            df = db.query(sql, params)
        logger.debug(f"Query returned {len(df)} rows")
        return df
