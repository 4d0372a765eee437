"""Anomaly and detection result data models"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from spendwatch.constants import AnomalyType, Severity


class Anomaly(BaseModel):
    """Advisory flag raised by one detection method"""

    id: Optional[str] = Field(None, description="Unique within a detection run, assigned by the orchestrator")
    kind: AnomalyType = Field(..., description="Detection method that raised the flag")
    severity: Severity = Field(..., description="low < medium < high < critical")
    title: str = Field(..., description="Short summary")
    description: str = Field(..., description="One-line explanation with interpolated values")
    vendor: Optional[str] = Field(None, description="Vendor the flag is about")
    department: Optional[str] = Field(None, description="Department the flag is about")
    amount: Optional[float] = Field(None, description="Dollar figure tied to the flag (sum or single payment)")
    count: Optional[int] = Field(None, description="Number of contributing transactions")
    details: List[str] = Field(default_factory=list, description="Evidence lines")
    investigation_tips: List[str] = Field(default_factory=list, description="Follow-up guidance")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "anomaly-3",
                "kind": "threshold_avoidance",
                "severity": "high",
                "title": "Possible Invoice Splitting at $10,000 Threshold",
                "description": "Acme LLC has 3 payments between $9,500 and $9,999",
                "vendor": "Acme LLC",
                "amount": 29850.0,
                "count": 3,
                "details": ["Vendor: Acme LLC", "Threshold being avoided: $10,000"],
                "investigation_tips": ["Verify if payments represent genuinely separate services"]
            }
        }


class DetectionStats(BaseModel):
    """Aggregate counts over one detection run"""

    total_anomalies: int = 0
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    # Naive sum: a transaction tripping several detectors is counted once per flag
    total_flagged_amount: float = 0.0

    @classmethod
    def from_anomalies(cls, anomalies: List[Anomaly]) -> "DetectionStats":
        counts = {severity: 0 for severity in Severity}
        flagged = 0.0
        for anomaly in anomalies:
            counts[anomaly.severity] += 1
            flagged += anomaly.amount or 0

        return cls(
            total_anomalies=len(anomalies),
            critical_count=counts[Severity.CRITICAL],
            high_count=counts[Severity.HIGH],
            medium_count=counts[Severity.MEDIUM],
            low_count=counts[Severity.LOW],
            total_flagged_amount=flagged,
        )


class DetectionResult(BaseModel):
    """Anomalies plus summary statistics for one run"""

    anomalies: List[Anomaly] = Field(default_factory=list)
    stats: DetectionStats = Field(default_factory=DetectionStats)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation"""
        return self.model_dump(mode="json")
