"""Transaction data model"""

from datetime import date as calendar_date, datetime
from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field, field_validator

from spendwatch.constants import UNKNOWN_LABEL


def parse_date(value) -> Optional[pd.Timestamp]:
    """
    Parse a raw transaction date into a naive wall-clock timestamp.

    Any embedded UTC offset is dropped without converting, so the calendar
    day and weekday are the ones written in the source record.

    Returns:
        Timestamp, or None when the value is missing, unparseable or outside
        the nanosecond timestamp range
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    if ts < pd.Timestamp.min or ts > pd.Timestamp.max:
        return None
    return ts


class Transaction(BaseModel):
    """Normalized spending record"""

    department: str = Field(UNKNOWN_LABEL, description="Spending unit (department or agency)")
    vendor: str = Field(UNKNOWN_LABEL, description="Payee name, used verbatim as grouping key")
    amount: float = Field(..., ge=0, allow_inf_nan=False, description="Payment amount in USD")
    date: str = Field("", description="Raw payment date, ISO date or date-time; empty if unknown")
    description: Optional[str] = Field(None, description="Free-text account description")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "department": "Public Works Department",
                "vendor": "Acme Paving LLC",
                "amount": 9950.00,
                "date": "2025-03-14T00:00:00",
                "description": "Road Maintenance"
            }
        }

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        if value is None:
            return ""
        if isinstance(value, (datetime, calendar_date)):
            return value.isoformat()
        return value

    @property
    def parsed_date(self) -> Optional[pd.Timestamp]:
        """Payment date as a naive timestamp, None when absent or unparseable"""
        return parse_date(self.date)
