"""Amount-pattern detection tools: digit distribution, duplicates, splitting, round numbers, outliers"""

import math
from typing import List, Optional

import numpy as np
import pandas as pd

from spendwatch.constants import AnomalyType, BENFORD_EXPECTED, Severity
from spendwatch.models.anomaly import Anomaly
from spendwatch.models.rules import (
    BenfordRules,
    DuplicatePaymentRules,
    LargeOutlierRules,
    RoundNumberRules,
    ThresholdAvoidanceRules,
)
from spendwatch.tools.frame import unique_in_order
from spendwatch.utils.formatting import format_currency, round_half_up


def leading_digit(amount: float) -> Optional[int]:
    """
    First digit of the integer part of an amount.

    The absolute value is truncated and rendered as a decimal string; its
    first character is the digit. Amounts below 1 have no countable digit.

    Returns:
        Digit 1-9, or None
    """
    if not math.isfinite(amount):
        return None
    integer_part = int(abs(amount))
    if integer_part == 0:
        return None
    return int(str(integer_part)[0])


def detect_benford_deviation(frame: pd.DataFrame, rules: Optional[BenfordRules] = None) -> List[Anomaly]:
    """
    Compare first-digit frequencies of payments against Benford's Law

    Args:
        frame: Transaction frame from transactions_to_frame
        rules: Thresholds (defaults: amounts >= $100, 100 samples, 5pp deviation)

    Returns:
        At most one anomaly summarizing the largest deviations
    """
    rules = rules or BenfordRules()

    amounts = frame.loc[frame['amount'] >= rules.min_amount, 'amount']
    total = len(amounts)
    if total < rules.min_sample_size:
        return []  # insufficient sample

    digit_counts = {digit: 0 for digit in BENFORD_EXPECTED}
    for amount in amounts:
        digit = leading_digit(amount)
        if digit in digit_counts:
            digit_counts[digit] += 1

    deviations = []
    for digit, expected in BENFORD_EXPECTED.items():
        actual = digit_counts[digit] / total
        deviation = abs(actual - expected)
        if deviation > rules.deviation_threshold:
            deviations.append({
                'digit': digit,
                'expected': expected,
                'actual': actual,
                'deviation': deviation
            })

    if not deviations:
        return []

    deviations.sort(key=lambda d: d['deviation'], reverse=True)

    severity = (
        Severity.HIGH
        if any(d['deviation'] > rules.high_deviation_threshold for d in deviations)
        else Severity.MEDIUM
    )

    digit_lines = [
        f"Digit {d['digit']}: Expected {d['expected'] * 100:.1f}%, "
        f"Actual {d['actual'] * 100:.1f}% ({(d['actual'] - d['expected']) * 100:+.1f}% deviation)"
        for d in deviations[:rules.top_deviations]
    ]

    return [Anomaly(
        kind=AnomalyType.BENFORDS_LAW,
        severity=severity,
        title="Benford's Law Deviation Detected",
        description=(
            "Payment amounts don't follow expected natural distribution - "
            "a potential indicator of fabricated numbers"
        ),
        count=total,
        details=[
            f"Analyzed {total:,} payments over {format_currency(rules.min_amount)}",
            *digit_lines,
            "Higher-than-expected rates of digits 7-9 can indicate fabricated invoices",
        ],
        investigation_tips=[
            "Benford's Law violations suggest numbers may not be naturally occurring",
            "Fabricated invoice amounts often skew toward higher first digits",
            "Cross-reference with vendors showing the largest deviations",
            "This was a key indicator in the Feeding Our Future fraud case",
        ],
    )]


def _day_span(timestamps: pd.Series) -> float:
    """Days between earliest and latest timestamp; NaN if any date is unknown"""
    if timestamps.empty or timestamps.isna().any():
        return float('nan')
    return (timestamps.max() - timestamps.min()).total_seconds() / 86400


def detect_duplicate_payments(
    frame: pd.DataFrame,
    rules: Optional[DuplicatePaymentRules] = None
) -> List[Anomaly]:
    """
    Flag vendors paid the exact same amount several times

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: >= 3 payments of > $1,000)

    Returns:
        One anomaly per qualifying (vendor, amount) group
    """
    rules = rules or DuplicatePaymentRules()
    anomalies = []

    for (vendor, amount), group in frame.groupby(['vendor', 'amount'], sort=False):
        count = len(group)
        if count < rules.min_count or amount <= rules.min_amount:
            continue

        total_amount = float(group['amount'].sum())
        span_days = _day_span(group['ts'])
        departments = unique_in_order(group['department'])

        severity = (
            Severity.HIGH
            if count >= rules.high_count or total_amount > rules.high_total
            else Severity.MEDIUM
        )

        anomalies.append(Anomaly(
            kind=AnomalyType.DUPLICATE_PAYMENTS,
            severity=severity,
            title="Potential Duplicate Payments",
            description=f"{vendor} received {count} identical payments of {format_currency(amount)}",
            vendor=vendor,
            amount=total_amount,
            count=count,
            details=[
                f"Vendor: {vendor}",
                f"Identical payment amount: {format_currency(amount)}",
                f"Number of identical payments: {count}",
                f"Total paid: {format_currency(total_amount)}",
                f"Time span: {round_half_up(span_days):.0f} days",
                f"Department(s): {', '.join(departments)}",
            ],
            investigation_tips=[
                "Verify each payment corresponds to a unique service/invoice",
                "Check for different invoice numbers on same-amount payments",
                "Could indicate invoice resubmission or system error",
                "Request supporting documentation for each payment",
            ],
        ))

    return anomalies


def detect_threshold_avoidance(
    frame: pd.DataFrame,
    rules: Optional[ThresholdAvoidanceRules] = None
) -> List[Anomaly]:
    """
    Flag vendors with clusters of payments just under an approval limit

    Each threshold is an independent hypothesis, so one vendor can be flagged
    once per threshold.

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: limits $1K-$100K, top 5% window, >= 3 payments)

    Returns:
        One anomaly per (threshold, vendor) pair
    """
    rules = rules or ThresholdAvoidanceRules()
    anomalies = []

    for threshold in rules.thresholds:
        lower_bound = threshold * rules.window_fraction
        upper_bound = threshold - 1

        near_threshold = frame[(frame['amount'] >= lower_bound) & (frame['amount'] <= upper_bound)]

        for vendor, group in near_threshold.groupby('vendor', sort=False):
            count = len(group)
            if count < rules.min_count:
                continue

            total_amount = float(group['amount'].sum())
            samples = ', '.join(format_currency(a) for a in group['amount'].head(rules.sample_size))

            anomalies.append(Anomaly(
                kind=AnomalyType.THRESHOLD_AVOIDANCE,
                severity=Severity.CRITICAL if count >= rules.critical_count else Severity.HIGH,
                title=f"Possible Invoice Splitting at {format_currency(threshold)} Threshold",
                description=(
                    f"{vendor} has {count} payments between "
                    f"{format_currency(lower_bound)} and {format_currency(upper_bound)}"
                ),
                vendor=vendor,
                amount=total_amount,
                count=count,
                details=[
                    f"Vendor: {vendor}",
                    f"Threshold being avoided: {format_currency(threshold)}",
                    f"Payments in range: {count}",
                    f"Amount range: {format_currency(lower_bound)} - {format_currency(upper_bound)}",
                    f"Total if combined: {format_currency(total_amount)}",
                    f"Sample amounts: {samples}",
                ],
                investigation_tips=[
                    "Invoice splitting is a common fraud technique to avoid approval requirements",
                    "Verify if payments represent genuinely separate services",
                    "Check if invoices have sequential numbers or same dates",
                    "This pattern was flagged in Minnesota daycare fraud investigations",
                    f"Combining these would exceed the {format_currency(threshold)} approval threshold",
                ],
            ))

    return anomalies


def detect_round_numbers(frame: pd.DataFrame, rules: Optional[RoundNumberRules] = None) -> List[Anomaly]:
    """
    Flag vendors whose payments are mostly exact round increments

    Patterns are evaluated independently; a vendor can match several.

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: >= 4 round payments making up > 50% of the vendor's)

    Returns:
        One anomaly per (pattern, vendor) pair
    """
    rules = rules or RoundNumberRules()
    anomalies = []
    vendor_counts = frame['vendor'].value_counts()

    for pattern in rules.patterns:
        round_payments = frame[
            (frame['amount'] >= pattern.min_amount) & (frame['amount'] % pattern.divisor == 0)
        ]

        for vendor, group in round_payments.groupby('vendor', sort=False):
            count = len(group)
            total_for_vendor = int(vendor_counts[vendor])
            round_percentage = count / total_for_vendor * 100

            if count < rules.min_count or round_percentage <= rules.min_percentage:
                continue

            total_amount = float(group['amount'].sum())
            samples = ', '.join(format_currency(a) for a in group['amount'].head(rules.sample_size))

            anomalies.append(Anomaly(
                kind=AnomalyType.ROUND_NUMBERS,
                severity=Severity.HIGH if count >= rules.high_count else Severity.MEDIUM,
                title="Suspicious Round Number Pattern",
                description=f"{round_percentage:.0f}% of payments to {vendor} are exact {pattern.name}",
                vendor=vendor,
                amount=total_amount,
                count=count,
                details=[
                    f"Vendor: {vendor}",
                    f"Round number payments: {count} of {total_for_vendor} ({round_percentage:.1f}%)",
                    f"Pattern: {pattern.name}",
                    f"Total in round payments: {format_currency(total_amount)}",
                    f"Sample amounts: {samples}",
                ],
                investigation_tips=[
                    "Legitimate invoices rarely come out to perfectly round numbers",
                    "Round numbers are a classic indicator of fabricated invoices",
                    "ACFE identifies round-dollar amounts as a key fraud red flag",
                    "Request original invoices to verify pricing details",
                ],
            ))

    return anomalies


def detect_large_outliers(frame: pd.DataFrame, rules: Optional[LargeOutlierRules] = None) -> List[Anomaly]:
    """
    Flag extreme single payments beyond an IQR fence

    Quartiles are taken by index into the sorted amounts (floor(n*q)), and the
    fence is Q3 + 3*IQR. Qualifying payments are ranked by amount, largest
    first, before the result cap is applied.

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: > $1M beyond the fence, at most 10)

    Returns:
        One anomaly per reported payment
    """
    rules = rules or LargeOutlierRules()

    amounts = np.sort(frame['amount'].to_numpy(dtype=float))
    n = len(amounts)
    if n == 0:
        return []

    median = amounts[n // 2]
    q1 = amounts[int(n * 0.25)]
    q3 = amounts[int(n * 0.75)]
    upper_fence = q3 + (q3 - q1) * rules.iqr_multiplier

    outliers = frame[(frame['amount'] > upper_fence) & (frame['amount'] > rules.min_amount)]
    records = sorted(outliers.to_dict('records'), key=lambda r: r['amount'], reverse=True)

    anomalies = []
    for record in records[:rules.max_results]:
        amount = float(record['amount'])
        vendor = record['vendor']
        department = record['department']
        multiplier = amount / median if median > 0 else math.inf
        description = record.get('description')

        details = [
            f"Vendor: {vendor}",
            f"Department: {department}",
            f"Amount: {format_currency(amount)}",
            f"Median payment: {format_currency(median)}",
            f"This payment is {multiplier:,.0f}x the median",
            f"Date: {record['date'] or 'Unknown'}",
        ]
        if isinstance(description, str) and description:
            details.append(f"Description: {description}")

        anomalies.append(Anomaly(
            kind=AnomalyType.LARGE_OUTLIER,
            severity=Severity.CRITICAL if amount > rules.critical_amount else Severity.HIGH,
            title="Extreme Payment Amount",
            description=f"{format_currency(amount)} payment to {vendor} is {multiplier:,.0f}x the median",
            vendor=vendor,
            department=department,
            amount=amount,
            details=details,
            investigation_tips=[
                "Verify payment matches a valid contract or purchase order",
                "Large one-time payments warrant additional scrutiny",
                "Check if payment was properly approved at appropriate levels",
                "Request supporting documentation (contracts, invoices, receipts)",
            ],
        ))

    return anomalies
