"""Spending summary models"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SpendingTotal(BaseModel):
    """Aggregate spending for one department or vendor"""

    name: str
    value: float = 0.0

    class Config:
        frozen = True


class SpendingSummary(BaseModel):
    """Headline totals for a spending dataset"""

    total_spending: float = Field(0.0, description="Sum of all payment amounts")
    total_transactions: int = Field(0, ge=0)
    top_departments: List[SpendingTotal] = Field(default_factory=list)
    top_vendors: List[SpendingTotal] = Field(default_factory=list)
    fiscal_year: Optional[int] = Field(None, description="Calendar year the fiscal year ends in")

    class Config:
        json_schema_extra = {
            "example": {
                "total_spending": 4123456789.0,
                "total_transactions": 213456,
                "top_departments": [{"name": "Boston Public Schools", "value": 1250000000.0}],
                "top_vendors": [{"name": "Acme Paving LLC", "value": 18500000.0}],
                "fiscal_year": 2025
            }
        }
