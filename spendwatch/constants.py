"""Constants and enums for the spending audit"""

from enum import Enum


class Severity(str, Enum):
    """Anomaly severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the ordering low < medium < high < critical"""
        return SEVERITY_RANK[self]


SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class AnomalyType(str, Enum):
    """Detection method tags, listed in execution order"""
    BENFORDS_LAW = "benfords_law"
    DUPLICATE_PAYMENTS = "duplicate_payments"
    THRESHOLD_AVOIDANCE = "threshold_avoidance"
    ROUND_NUMBERS = "round_numbers"
    WEEKEND_PAYMENTS = "weekend_payments"
    SAME_DAY_PAYMENTS = "same_day_payments"
    VENDOR_NAME_FLAG = "vendor_name_flag"
    HIGH_FREQUENCY = "high_frequency"
    LARGE_OUTLIER = "large_outlier"
    VENDOR_CONCENTRATION = "vendor_concentration"


class DataSource(str, Enum):
    """Where a transaction batch came from"""
    BOSTON = "boston"
    MASSACHUSETTS = "massachusetts"
    FILE = "file"


UNKNOWN_LABEL = "Unknown"

# Benford's Law expected first-digit frequencies
BENFORD_EXPECTED = {
    1: 0.301,
    2: 0.176,
    3: 0.125,
    4: 0.097,
    5: 0.079,
    6: 0.067,
    7: 0.058,
    8: 0.051,
    9: 0.046,
}

# Common approval limits checked for invoice splitting
APPROVAL_THRESHOLDS = [1000, 2500, 5000, 10000, 25000, 50000, 100000]

# (divisor, minimum amount, label)
ROUND_NUMBER_PATTERNS = [
    (10000, 10000, "$10K increments"),
    (5000, 5000, "$5K increments"),
    (1000, 5000, "$1K increments"),
]

# Ingest defaults
DEFAULT_TRANSACTION_LIMIT = 10000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_CONFIG_PATH = "config/rules.yaml"
