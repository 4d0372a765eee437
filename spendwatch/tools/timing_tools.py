"""Timing-pattern detection tools: weekend activity and same-day payment bursts"""

from typing import List, Optional

import pandas as pd

from spendwatch.constants import AnomalyType, Severity
from spendwatch.models.anomaly import Anomaly
from spendwatch.models.rules import SameDayPaymentRules, WeekendPaymentRules
from spendwatch.tools.frame import unique_in_order
from spendwatch.utils.formatting import format_currency

SATURDAY = 5  # pandas dayofweek: Monday=0 ... Sunday=6


def detect_weekend_payments(
    frame: pd.DataFrame,
    rules: Optional[WeekendPaymentRules] = None
) -> List[Anomaly]:
    """
    Flag vendors with a large share of payments dated on Saturday or Sunday

    Undated transactions never count as weekend payments but still count
    toward the vendor's total.

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: >= 5 weekend payments, > 20% of the vendor's)

    Returns:
        One anomaly per qualifying vendor
    """
    rules = rules or WeekendPaymentRules()

    dated = frame[frame['ts'].notna()]
    weekend_payments = dated[dated['ts'].dt.dayofweek >= SATURDAY]
    if weekend_payments.empty:
        return []

    vendor_counts = frame['vendor'].value_counts()
    anomalies = []

    for vendor, group in weekend_payments.groupby('vendor', sort=False):
        count = len(group)
        if count < rules.min_count:
            continue

        total_for_vendor = int(vendor_counts[vendor])
        weekend_percentage = count / total_for_vendor * 100
        if weekend_percentage <= rules.min_percentage:
            continue

        total_amount = float(group['amount'].sum())

        anomalies.append(Anomaly(
            kind=AnomalyType.WEEKEND_PAYMENTS,
            severity=Severity.HIGH if weekend_percentage > rules.high_percentage else Severity.MEDIUM,
            title="High Weekend Payment Activity",
            description=f"{weekend_percentage:.0f}% of payments to {vendor} occurred on weekends",
            vendor=vendor,
            amount=total_amount,
            count=count,
            details=[
                f"Vendor: {vendor}",
                f"Weekend payments: {count} of {total_for_vendor} ({weekend_percentage:.1f}%)",
                f"Total weekend payments: {format_currency(total_amount)}",
                "Government offices typically don't process payments on weekends",
            ],
            investigation_tips=[
                "Weekend payments may indicate backdated transactions",
                "In MN fraud cases, services claimed on weekends when facilities were closed",
                "Verify the vendor actually provides weekend services",
                "Cross-reference with vendor operating hours",
            ],
        ))

    return anomalies


def detect_same_day_payments(
    frame: pd.DataFrame,
    rules: Optional[SameDayPaymentRules] = None
) -> List[Anomaly]:
    """
    Flag vendors receiving several separate payments on one calendar day

    Time of day is ignored; undated transactions are skipped.

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: >= 3 payments on the same day)

    Returns:
        One anomaly per qualifying (vendor, day) group
    """
    rules = rules or SameDayPaymentRules()

    dated = frame[frame['ts'].notna()].assign(day=lambda df: df['ts'].dt.normalize())
    anomalies = []

    for (vendor, day), group in dated.groupby(['vendor', 'day'], sort=False):
        count = len(group)
        if count < rules.min_count:
            continue

        total_amount = float(group['amount'].sum())
        day_label = day.strftime('%Y-%m-%d')
        amounts = ', '.join(format_currency(a) for a in group['amount'])
        departments = unique_in_order(group['department'])

        severity = (
            Severity.HIGH
            if count >= rules.high_count or total_amount > rules.high_total
            else Severity.MEDIUM
        )

        anomalies.append(Anomaly(
            kind=AnomalyType.SAME_DAY_PAYMENTS,
            severity=severity,
            title="Multiple Same-Day Payments",
            description=f"{vendor} received {count} separate payments on {day_label}",
            vendor=vendor,
            amount=total_amount,
            count=count,
            details=[
                f"Vendor: {vendor}",
                f"Date: {day_label}",
                f"Number of payments: {count}",
                f"Individual amounts: {amounts}",
                f"Combined total: {format_currency(total_amount)}",
                f"Departments: {', '.join(departments)}",
            ],
            investigation_tips=[
                "Multiple same-day payments may indicate invoice splitting",
                "Could be used to keep individual amounts below approval thresholds",
                "Verify each payment corresponds to a distinct service",
                "Check if invoices are sequentially numbered",
            ],
        ))

    return anomalies
