"""Unit tests for weekend and same-day payment detection"""

from spendwatch.constants import AnomalyType, Severity
from spendwatch.models.transaction import Transaction
from spendwatch.tools.frame import transactions_to_frame
from spendwatch.tools.timing_tools import detect_same_day_payments, detect_weekend_payments

# March 2025: the 1st, 8th and 15th are Saturdays; the 3rd-7th are Mon-Fri
WEEKEND_DATES = ["2025-03-01", "2025-03-02", "2025-03-08", "2025-03-09", "2025-03-15"]
WEEKDAY_DATES = ["2025-03-03", "2025-03-04", "2025-03-05", "2025-03-06", "2025-03-07"]


def _txn(vendor, amount, date, department="Public Works Department"):
    return Transaction(vendor=vendor, amount=amount, date=date, department=department)


def _frame(transactions):
    return transactions_to_frame(transactions)


# Weekend payments

def test_weekend_payments_high():
    """5 of 10 payments on weekends (50%) is high severity"""
    transactions = [_txn("Weekend Co", 500, d) for d in WEEKEND_DATES + WEEKDAY_DATES]

    anomalies = detect_weekend_payments(_frame(transactions))

    assert len(anomalies) == 1
    anomaly = anomalies[0]
    assert anomaly.kind == AnomalyType.WEEKEND_PAYMENTS
    assert anomaly.severity == Severity.HIGH
    assert anomaly.count == 5
    assert anomaly.amount == 2500
    assert anomaly.description == "50% of payments to Weekend Co occurred on weekends"
    assert "Weekend payments: 5 of 10 (50.0%)" in anomaly.details


def test_weekend_payments_medium():
    """5 of 20 payments (25%) is above 20% but not above 40%"""
    transactions = [_txn("Weekend Co", 500, d) for d in WEEKEND_DATES + WEEKDAY_DATES * 3]

    anomalies = detect_weekend_payments(_frame(transactions))

    assert len(anomalies) == 1
    assert anomalies[0].severity == Severity.MEDIUM


def test_weekend_payments_need_minimum_count():
    transactions = [_txn("Weekend Co", 500, d) for d in WEEKEND_DATES[:4]]

    assert detect_weekend_payments(_frame(transactions)) == []


def test_weekend_share_counts_undated_payments():
    """Undated payments count toward the vendor's total, lowering the share"""
    transactions = [_txn("Weekend Co", 500, d) for d in WEEKEND_DATES]
    transactions += [_txn("Weekend Co", 500, "") for _ in range(20)]

    # 5 of 25 = 20%, which is not above 20%
    assert detect_weekend_payments(_frame(transactions)) == []


def test_weekend_uses_wall_clock_day():
    """A Monday 01:00 timestamp with a +05:00 offset stays a Monday"""
    transactions = [_txn("Early Co", 500, f"{d}T01:00:00+05:00") for d in WEEKDAY_DATES]

    assert detect_weekend_payments(_frame(transactions)) == []


# Same-day payments

def test_same_day_payments_medium():
    """Time of day is ignored when grouping by calendar day"""
    transactions = [
        _txn("Same Day Inc", 1200, "2025-03-04T09:00:00"),
        _txn("Same Day Inc", 800, "2025-03-04T15:30:00", department="Parks & Recreation"),
        _txn("Same Day Inc", 450.5, "2025-03-04"),
        _txn("Same Day Inc", 999, "2025-03-05"),
    ]

    anomalies = detect_same_day_payments(_frame(transactions))

    assert len(anomalies) == 1
    anomaly = anomalies[0]
    assert anomaly.kind == AnomalyType.SAME_DAY_PAYMENTS
    assert anomaly.severity == Severity.MEDIUM
    assert anomaly.description == "Same Day Inc received 3 separate payments on 2025-03-04"
    assert anomaly.amount == 2450.5
    assert "Individual amounts: $1,200, $800, $451" in anomaly.details
    assert "Departments: Public Works Department, Parks & Recreation" in anomaly.details


def test_same_day_payments_high_on_count():
    transactions = [_txn("Same Day Inc", 100, "2025-03-04") for _ in range(5)]

    assert detect_same_day_payments(_frame(transactions))[0].severity == Severity.HIGH


def test_same_day_payments_high_on_total():
    transactions = [_txn("Same Day Inc", 20000, "2025-03-04") for _ in range(3)]

    assert detect_same_day_payments(_frame(transactions))[0].severity == Severity.HIGH


def test_same_day_skips_unparseable_dates():
    transactions = [_txn("Same Day Inc", 100, "garbage") for _ in range(5)]
    transactions += [_txn("Same Day Inc", 100, "") for _ in range(5)]

    assert detect_same_day_payments(_frame(transactions)) == []


def test_same_day_one_anomaly_per_vendor_day():
    transactions = [_txn("A", 100, "2025-03-04") for _ in range(3)]
    transactions += [_txn("A", 100, "2025-03-05") for _ in range(3)]
    transactions += [_txn("B", 100, "2025-03-04") for _ in range(3)]

    anomalies = detect_same_day_payments(_frame(transactions))

    assert [(a.vendor, a.details[1]) for a in anomalies] == [
        ("A", "Date: 2025-03-04"),
        ("A", "Date: 2025-03-05"),
        ("B", "Date: 2025-03-04"),
    ]


def test_timing_tools_empty_frame():
    frame = _frame([])

    assert detect_weekend_payments(frame) == []
    assert detect_same_day_payments(frame) == []
