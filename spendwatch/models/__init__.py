"""Data models for the spending audit"""

from .transaction import Transaction, parse_date
from .anomaly import Anomaly, DetectionStats, DetectionResult
from .rules import DetectionRules
from .summary import SpendingSummary, SpendingTotal
from .audit_run import AuditRun

__all__ = [
    "Transaction",
    "parse_date",
    "Anomaly",
    "DetectionStats",
    "DetectionResult",
    "DetectionRules",
    "SpendingSummary",
    "SpendingTotal",
    "AuditRun",
]
