import csv
import logging
import os
from dataclasses import dataclass
import pandas as pd
from pydantic import ValidationError

from property_reports.config import BATCH_SIZE, DB_PATH, TABLE_NAME
from property_reports.database import ReportsDB
from property_reports.errors import IngestionError
from property_reports.schemas import CANONICAL_COLUMNS, PropertyRecord, normalize_column

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"address", "town", "list_year"}
STAGING_TABLE = f"{TABLE_NAME}_staging"

# Schema Definition
# No primary key: the same (address, town) may be listed in several years.
TABLE_SQL = """
DROP TABLE IF EXISTS {table};
CREATE TABLE {table} (
    address TEXT NOT NULL,
    town TEXT NOT NULL,
    property_type TEXT,
    list_year INTEGER NOT NULL,
    assessed_value REAL,
    sale_amount REAL,
    sales_ratio REAL
);
"""

INDEX_SQL = f"""
CREATE INDEX IF NOT EXISTS idx_sales_town ON {TABLE_NAME}(town);
CREATE INDEX IF NOT EXISTS idx_sales_year ON {TABLE_NAME}(list_year);
"""

# Replaces the live table with the fully loaded staging table in one transaction.
SWAP_SQL = f"""
BEGIN;
DROP TABLE IF EXISTS {TABLE_NAME};
ALTER TABLE {STAGING_TABLE} RENAME TO {TABLE_NAME};
{INDEX_SQL}
COMMIT;
"""

INSERT_SQL = "INSERT INTO {{table}} ({columns}) VALUES ({placeholders})".format(
    columns=", ".join(CANONICAL_COLUMNS),
    placeholders=", ".join(["?"] * len(CANONICAL_COLUMNS)),
)


@dataclass
class IngestionSummary:
    processed: int = 0
    inserted: int = 0
    rejected: int = 0


def init_db(db: ReportsDB) -> None:
    logger.info("Initializing database schema...")
    db.execute_script(TABLE_SQL.format(table=TABLE_NAME) + INDEX_SQL)


def insert_records(db: ReportsDB, records, table: str = TABLE_NAME) -> int:
    """Bulk insert of already-validated PropertyRecord objects."""
    rows = [record.as_row() for record in records]
    if rows:
        db.execute_many(INSERT_SQL.format(table=table), rows)
    return len(rows)


def read_header(records_path: str) -> dict:
    """Maps the file's column names to canonical names, checking the required ones."""
    try:
        header = pd.read_csv(records_path, nrows=0, dtype=str)
    except pd.errors.EmptyDataError:
        raise IngestionError(f"{records_path} has no columns.") from None

    normalized = {col: normalize_column(col) for col in header.columns}
    missing = REQUIRED_COLUMNS - set(normalized.values())
    if missing:
        raise IngestionError(f"{records_path} is missing required columns: {sorted(missing)}")
    return normalized


def ingest_records(
    records_path: str,
    db_path: str = DB_PATH,
    rejects_path: str = None,
    batch_size: int = BATCH_SIZE,
    db: ReportsDB = None,
) -> IngestionSummary:
    """
    Loads a CSV export into the property_sales table, replacing its contents.

    Header variants ('Sale Amount', SALE_AMOUNT, ...) are normalized to the
    canonical column names. Rows failing validation are written to the rejects
    file and skipped. Rows are loaded into a staging table first; the existing
    table is only replaced once the whole file has been read, so a malformed
    file leaves previously loaded data in place.
    """
    if not os.path.exists(records_path):
        raise IngestionError(f"{records_path} not found.")

    if rejects_path is None:
        rejects_path = os.path.join(os.path.dirname(records_path) or ".", "rejected_records.csv")

    normalized = read_header(records_path)

    logger.info(f"Starting ingestion from {records_path}...")
    summary = IngestionSummary()

    with open(rejects_path, 'w', newline='') as f_reject:
        writer = csv.writer(f_reject)
        writer.writerow(['address', 'error_message', 'raw_data'])

        with (db or ReportsDB(db_path)) as conn:
            conn.execute_script(TABLE_SQL.format(table=STAGING_TABLE))
            try:
                # using chunksize to handle memory efficiently
                for chunk in pd.read_csv(records_path, chunksize=batch_size, low_memory=False, dtype=str):
                    chunk = chunk.rename(columns=normalized)
                    # Convert chunk to list of dicts: replace NaN with None
                    rows = chunk.astype(object).where(pd.notnull(chunk), None).to_dict('records')

                    batch = []
                    for row in rows:
                        summary.processed += 1
                        try:
                            batch.append(PropertyRecord(**row))
                        except ValidationError as e:
                            summary.rejected += 1
                            writer.writerow([row.get('address') or 'UNKNOWN', str(e), str(row)])

                    summary.inserted += insert_records(conn, batch, table=STAGING_TABLE)
                    logger.debug(
                        f"Processed: {summary.processed} | Inserted: {summary.inserted} | Rejected: {summary.rejected}"
                    )
            except pd.errors.ParserError as e:
                raise IngestionError(f"{records_path} could not be parsed: {e}") from e

            conn.execute_script(SWAP_SQL)

    logger.info(f"Ingestion complete. Inserted: {summary.inserted}")
    if summary.rejected:
        logger.warning(f"Rejected {summary.rejected} rows (see {rejects_path})")
    return summary
