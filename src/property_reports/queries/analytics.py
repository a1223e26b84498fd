import logging
from datetime import date
import pandas as pd
from .sql_fragments import (
    HIGH_VALUE_SQL,
    EXACT_MATCHES_SQL,
    ASSESSED_NOT_SOLD_SQL,
    TOWN_EXCLUSIVE_SQL,
    SHARED_PROPERTY_TYPES_SQL,
    RECENT_UNSOLD_SQL,
    TOP_SALES_BY_TOWN_SQL,
    DOMINANT_PROPERTY_TYPE_SQL,
    PRICE_BUCKETS_SQL,
    SALES_RATIOS_SQL,
    YOY_PRICE_CHANGE_SQL,
    TOP_APPRECIATION_SQL,
)

logger = logging.getLogger(__name__)

ANOMALY_COLUMNS = ['town', 'address', 'sales_ratio']

class SetComparisonMixin:
    def get_high_value(self, threshold: float = None) -> pd.DataFrame:
        if threshold is None:
            threshold = self.params.high_value_threshold
        return self._query(HIGH_VALUE_SQL, {"threshold": threshold})

    def get_exact_matches(self) -> pd.DataFrame:
        return self._query(EXACT_MATCHES_SQL)

    def get_assessed_not_sold(self) -> pd.DataFrame:
        return self._query(ASSESSED_NOT_SOLD_SQL)

    def get_town_exclusive(self, town_a: str = None, town_b: str = None) -> pd.DataFrame:
        """Addresses/assessed values present in town_a and absent from town_b."""
        params = {
            "town_a": town_a or self.params.exclusive_town,
            "town_b": town_b or self.params.excluded_town,
        }
        return self._query(TOWN_EXCLUSIVE_SQL, params)

    def get_shared_property_types(self, town_a: str = None, town_b: str = None) -> pd.DataFrame:
        params = {
            "town_a": town_a or self.params.shared_town_a,
            "town_b": town_b or self.params.shared_town_b,
        }
        return self._query(SHARED_PROPERTY_TYPES_SQL, params)

    def get_recent_unsold(self, reference_date: date, window_years: int = None) -> pd.DataFrame:
        """
        Listings from the last `window_years` list years (relative to
        reference_date) whose (address, town, list_year) never sold.
        """
        if window_years is None:
            window_years = self.params.recent_window_years
        min_year = reference_date.year - window_years
        return self._query(RECENT_UNSOLD_SQL, {"min_year": min_year})

class RankingMixin:
    def get_top_sales_by_town(self, top_n: int = None) -> pd.DataFrame:
        if top_n is None:
            top_n = self.params.top_sales_per_town
        return self._query(TOP_SALES_BY_TOWN_SQL, {"top_n": top_n})

    def get_dominant_property_type(self) -> pd.DataFrame:
        return self._query(DOMINANT_PROPERTY_TYPE_SQL)

    def get_price_buckets(self) -> pd.DataFrame:
        return self._query(PRICE_BUCKETS_SQL)

    def get_sales_ratio_anomalies(self, stddevs: float = None) -> pd.DataFrame:
        """
        Flags records whose sales ratio exceeds mean + k * stddev of their town.
        Uses the sample standard deviation. Towns whose deviation is zero or
        undefined (a single ratio) flag nothing.
        """
        if stddevs is None:
            stddevs = self.params.anomaly_stddevs
        df = self._query(SALES_RATIOS_SQL)
        if df.empty:
            return df[ANOMALY_COLUMNS]

        stats = df.groupby('town')['sales_ratio'].agg(avg_ratio='mean', stddev_ratio='std')
        df = df.merge(stats, left_on='town', right_index=True, how='left')
        threshold = df['avg_ratio'] + stddevs * df['stddev_ratio']
        flagged = df[(df['stddev_ratio'] > 0) & (df['sales_ratio'] > threshold)]

        flagged = flagged.sort_values(
            ['sales_ratio', 'town', 'address'], ascending=[False, True, True], kind='mergesort'
        )
        logger.debug(f"Flagged {len(flagged)} of {len(df)} sales ratios")
        return flagged[ANOMALY_COLUMNS].reset_index(drop=True)

class TrendMixin:
    def get_yoy_price_change(self, base_year: int = None, compare_year: int = None) -> pd.DataFrame:
        base_year = int(base_year or self.params.base_year)
        compare_year = int(compare_year or self.params.compare_year)
        sql = YOY_PRICE_CHANGE_SQL.format(base_year=base_year, compare_year=compare_year)
        return self._query(sql, {"base_year": base_year, "compare_year": compare_year})

    def get_top_appreciation(self, base_year: int = None, compare_year: int = None, limit: int = None) -> pd.DataFrame:
        base_year = int(base_year or self.params.base_year)
        compare_year = int(compare_year or self.params.compare_year)
        if limit is None:
            limit = self.params.top_appreciation_limit
        sql = TOP_APPRECIATION_SQL.format(base_year=base_year, compare_year=compare_year)
        return self._query(sql, {"base_year": base_year, "compare_year": compare_year, "limit": limit})
