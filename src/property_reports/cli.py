import argparse
import logging
import sys
from datetime import date

from property_reports.catalog import REPORT_CATALOG, run_reports
from property_reports.config import BATCH_SIZE, DB_PATH, OUTPUT_DIR
from property_reports.database import ensure_ready
from property_reports.errors import ReportError
from property_reports.ingestion import ingest_records
from property_reports.queries import PropertyReports

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="property-reports", description="Property sales report catalog")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Load a CSV export into the database")
    ingest.add_argument("csv", help="Input CSV of property records")
    ingest.add_argument("--db", default=DB_PATH, help="SQLite database path")
    ingest.add_argument("--rejects", default=None, help="Where to write rejected rows")
    ingest.add_argument("--batch-size", type=int, default=BATCH_SIZE, help="Rows per insert batch")

    sub.add_parser("list", help="List available reports")

    run = sub.add_parser("run", help="Run reports and export them as CSV")
    run.add_argument("reports", nargs="*", help="Report keys (default: all)")
    run.add_argument("--db", default=DB_PATH, help="SQLite database path")
    run.add_argument("--out", default=OUTPUT_DIR, help="Output directory")
    run.add_argument("--as-of", type=date.fromisoformat, default=None,
                     help="Reference date (YYYY-MM-DD) for date-relative reports")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "ingest":
            summary = ingest_records(args.csv, db_path=args.db, rejects_path=args.rejects,
                                     batch_size=args.batch_size)
            print(f"Inserted: {summary.inserted} | Rejected: {summary.rejected}")
        elif args.command == "list":
            for definition in REPORT_CATALOG.values():
                print(f"{definition.number:>2}  {definition.key:<24} {definition.title}")
        elif args.command == "run":
            ensure_ready(args.db)
            results = run_reports(PropertyReports(args.db), args.reports or None,
                                  output_dir=args.out, as_of=args.as_of)
            for key, df in results.items():
                print(f"{key}: {len(df)} rows")
    except ReportError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
