import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DB_PATH = os.getenv("PROPERTY_REPORTS_DB", "property_sales.db")
OUTPUT_DIR = os.getenv("PROPERTY_REPORTS_OUTPUT_DIR", "reports")
BATCH_SIZE = int(os.getenv("PROPERTY_REPORTS_BATCH_SIZE", "1000"))

TABLE_NAME = "property_sales"


@dataclass(frozen=True)
class ReportParameters:
    """Tunable inputs shared by the report catalog."""

    high_value_threshold: float = 1_000_000
    exclusive_town: str = "Clinton"
    excluded_town: str = "Lebanon"
    shared_town_a: str = "Ansonia"
    shared_town_b: str = "Avon"
    recent_window_years: int = 5
    top_sales_per_town: int = 5
    base_year: int = 2020
    compare_year: int = 2021
    anomaly_stddevs: float = 2.0
    top_appreciation_limit: int = 10
