"""
Report catalog and execution harness.

Each report is registered under a short key that doubles as the CSV file
name when results are exported.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Optional

import pandas as pd

from property_reports.errors import UnknownReportError
from property_reports.queries import PropertyReports

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportDefinition:
    number: int
    key: str
    title: str
    method: str
    needs_reference_date: bool = False


REPORT_CATALOG: Dict[str, ReportDefinition] = {
    d.key: d
    for d in (
        ReportDefinition(1, "high_value", "High-Value Listings or Sales", "get_high_value"),
        ReportDefinition(2, "exact_matches", "Exact Matches in Assessed and Sold Values", "get_exact_matches"),
        ReportDefinition(3, "assessed_not_sold", "Assessed but Not Sold", "get_assessed_not_sold"),
        ReportDefinition(4, "town_exclusive", "Town Exclusive Assessment", "get_town_exclusive"),
        ReportDefinition(5, "shared_property_types", "Shared Property Types", "get_shared_property_types"),
        ReportDefinition(6, "recent_unsold", "Recent Unsold Listings", "get_recent_unsold", needs_reference_date=True),
        ReportDefinition(7, "top_sales_by_town", "Top Sales per Town", "get_top_sales_by_town"),
        ReportDefinition(8, "yoy_price_change", "YoY Average Price Change", "get_yoy_price_change"),
        ReportDefinition(9, "dominant_property_type", "Dominant Property Type per Town", "get_dominant_property_type"),
        ReportDefinition(10, "price_buckets", "Price Bucket Histogram", "get_price_buckets"),
        ReportDefinition(11, "sales_ratio_anomalies", "Sales-Ratio Anomalies", "get_sales_ratio_anomalies"),
        ReportDefinition(12, "top_appreciation", "Top Town Appreciation", "get_top_appreciation"),
    )
}


def get_report(key: str) -> ReportDefinition:
    try:
        return REPORT_CATALOG[key]
    except KeyError:
        raise UnknownReportError(
            f"Unknown report '{key}'. Available: {', '.join(REPORT_CATALOG)}"
        ) from None


def run_report(reports: PropertyReports, key: str, as_of: Optional[date] = None) -> pd.DataFrame:
    """Runs a single catalog report. `as_of` defaults to today for date-relative reports."""
    definition = get_report(key)
    method = getattr(reports, definition.method)
    if definition.needs_reference_date:
        df = method(reference_date=as_of or date.today())
    else:
        df = method()
    logger.info(f"Report {definition.number:>2} {definition.key}: {len(df)} rows")
    return df


def run_reports(
    reports: PropertyReports,
    keys: Optional[Iterable[str]] = None,
    output_dir: Optional[str] = None,
    as_of: Optional[date] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Runs the requested reports (all of them by default) in catalog order.

    Unknown keys are rejected before anything runs. When output_dir is given
    each result is also written to <output_dir>/<key>.csv.
    """
    selected = [get_report(k).key for k in keys] if keys else list(REPORT_CATALOG)
    results = {key: run_report(reports, key, as_of=as_of) for key in selected}

    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for key, df in results.items():
            df.to_csv(out / f"{key}.csv", index=False)
        logger.info(f"Wrote {len(results)} reports to {out}")
    return results
