import math
import re
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Any
import pandas as pd

CANONICAL_COLUMNS = (
    "address",
    "town",
    "property_type",
    "list_year",
    "assessed_value",
    "sale_amount",
    "sales_ratio",
)


def normalize_column(name: Any) -> str:
    """
    Folds the header variants seen in source exports onto one spelling.
    'ASSESSED_VALUE', '"Sale Amount"' and 'List-Year' become
    'assessed_value', 'sale_amount' and 'list_year'.
    """
    cleaned = str(name).strip().strip('"').strip("'").strip().lower()
    return re.sub(r"[\s\-]+", "_", cleaned)


class PropertyRecord(BaseModel):
    """
    Represents a single parcel listing / assessment snapshot.
    A record without a sale_amount is a listing that has not sold.
    """
    # Key Identifiers (not unique: a parcel may be re-listed across years)
    address: str = Field(..., description="Street-level address")
    town: str = Field(..., description="Municipality name")
    list_year: int = Field(..., description="Calendar year the record was listed")

    property_type: Optional[str] = None

    # Valuation
    assessed_value: Optional[float] = None
    sale_amount: Optional[float] = None
    sales_ratio: Optional[float] = Field(None, description="sale_amount / assessed_value when not supplied")

    # Validators
    @field_validator('address', 'town', 'property_type', mode='before')
    @classmethod
    def clean_text(cls, v: Any) -> Optional[str]:
        if v is None or pd.isna(v):
            return None
        v_str = str(v).strip()
        return v_str or None

    @field_validator('assessed_value', 'sale_amount', 'sales_ratio', mode='before')
    @classmethod
    def clean_numeric(cls, v: Any) -> Optional[float]:
        """Coerces '$1,250,000.00' style strings to float; junk becomes None."""
        if v is None or pd.isna(v) or str(v).strip() == "":
            return None
        v_str = str(v).strip().replace("$", "").replace(",", "")
        try:
            value = float(v_str)
        except ValueError:
            return None
        # "nan" and "inf" parse as floats but are not amounts
        return value if math.isfinite(value) else None

    @field_validator('list_year', mode='before')
    @classmethod
    def clean_year(cls, v: Any) -> Any:
        # '2021.0' comes out of float-typed CSV columns
        if isinstance(v, str) and v.strip():
            try:
                return int(float(v.strip()))
            except ValueError:
                return v
        return v

    @model_validator(mode='after')
    def derive_sales_ratio(self) -> "PropertyRecord":
        if (
            self.sales_ratio is None
            and self.sale_amount is not None
            and self.assessed_value not in (None, 0)
        ):
            self.sales_ratio = self.sale_amount / self.assessed_value
        return self

    def as_row(self) -> tuple:
        return tuple(getattr(self, col) for col in CANONICAL_COLUMNS)

    model_config = {
        "extra": "ignore"
    }
