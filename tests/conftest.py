import sqlite3
import pytest
from property_reports.database import ReportsDB
from property_reports.ingestion import init_db, insert_records
from property_reports.queries import PropertyReports
from property_reports.schemas import PropertyRecord

class PersistentDB(ReportsDB):
    """Keeps connection open for in-memory tests."""
    def __enter__(self):
        if not self.conn:
            self.conn = sqlite3.connect(self.db_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Do not close automatically
        pass

def record(address, town, list_year=2020, assessed=None, sale=None, ptype="Residential", ratio=None):
    return PropertyRecord(
        address=address,
        town=town,
        list_year=list_year,
        assessed_value=assessed,
        sale_amount=sale,
        property_type=ptype,
        sales_ratio=ratio,
    )

@pytest.fixture
def memory_db():
    db = PersistentDB(":memory:")
    with db:
        init_db(db)
    yield db
    db.conn.close()

@pytest.fixture
def make_reports(memory_db):
    """Seeds the in-memory table and returns a PropertyReports bound to it."""
    def _make(records, params=None):
        with memory_db:
            insert_records(memory_db, records)
        return PropertyReports(db=memory_db, params=params)
    return _make
