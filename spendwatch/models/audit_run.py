"""Audit run summary model"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from spendwatch.constants import DataSource
from .anomaly import DetectionResult


class AuditRun(BaseModel):
    """Outcome of one fetch -> detect audit"""

    audit_run_id: str = Field(..., description="UUID for this audit run")
    source: DataSource
    status: str = Field("completed", description="completed | failed")
    transaction_count: int = Field(0, ge=0)
    started_at: datetime = Field(default_factory=datetime.now)
    duration_seconds: float = 0.0
    source_detail: Optional[str] = Field(None, description="Fiscal year, agency or file path")
    result: DetectionResult = Field(default_factory=DetectionResult)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
