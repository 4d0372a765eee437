"""Vendor-level detection tools: shell-company names, payment frequency, spending concentration"""

import re
from typing import Callable, List, Optional, Tuple

import pandas as pd

from spendwatch.constants import AnomalyType, Severity, UNKNOWN_LABEL
from spendwatch.models.anomaly import Anomaly
from spendwatch.models.rules import HighFrequencyRules, VendorConcentrationRules, VendorNameRules
from spendwatch.utils.formatting import format_currency

_DOUBLE_LLC = re.compile(r'\bLLC\b.*\bLLC\b', re.IGNORECASE)
_ACRONYM_COMPANY = re.compile(r'^[A-Z]{2,4}\s+(LLC|INC|CORP)')
_GENERIC_NAME = re.compile(r'consulting|services|solutions|enterprises|holdings', re.IGNORECASE)

# Evaluated in order; the first matching rule names the flag
VENDOR_NAME_RULES: List[Tuple[str, Callable[[str], bool]]] = [
    ("Double LLC", lambda name: bool(_DOUBLE_LLC.search(name))),
    ("Acronym company", lambda name: bool(_ACRONYM_COMPANY.match(name))),
    ("Generic business name", lambda name: bool(_GENERIC_NAME.search(name))),
]


def match_vendor_name_rule(vendor: str) -> Optional[str]:
    """Name of the first shell-company naming rule the vendor matches, or None"""
    for rule_name, predicate in VENDOR_NAME_RULES:
        if predicate(vendor):
            return rule_name
    return None


def _vendor_profile(frame: pd.DataFrame) -> pd.DataFrame:
    """Per-vendor count, total, distinct departments and first department, in first-seen order"""
    return frame.groupby('vendor', sort=False).agg(
        count=('amount', 'count'),
        total=('amount', 'sum'),
        departments=('department', 'nunique'),
        first_department=('department', 'first'),
    )


def detect_vendor_name_flags(frame: pd.DataFrame, rules: Optional[VendorNameRules] = None) -> List[Anomaly]:
    """
    Flag high-value vendors whose names follow shell-company patterns

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: vendors paid >= $50,000 in total)

    Returns:
        At most one anomaly per vendor
    """
    rules = rules or VendorNameRules()
    anomalies = []

    for vendor, profile in _vendor_profile(frame).iterrows():
        total = float(profile['total'])
        if total < rules.min_vendor_total:
            continue

        rule_name = match_vendor_name_rule(vendor)
        if rule_name is None:
            continue

        count = int(profile['count'])
        primary_department = profile['first_department'] or UNKNOWN_LABEL

        anomalies.append(Anomaly(
            kind=AnomalyType.VENDOR_NAME_FLAG,
            severity=Severity.MEDIUM if total > rules.medium_vendor_total else Severity.LOW,
            title=f"Vendor Name Red Flag: {rule_name}",
            description=f'"{vendor}" matches shell company naming patterns',
            vendor=vendor,
            amount=total,
            count=count,
            details=[
                f"Vendor: {vendor}",
                f"Pattern matched: {rule_name}",
                f"Total payments: {format_currency(total)}",
                f"Number of payments: {count}",
                f"Primary department: {primary_department}",
            ],
            investigation_tips=[
                "Generic business names are commonly used by shell companies",
                "Verify business registration with Secretary of State",
                "Search for web presence and physical location",
                "Check if business address is a PO Box or virtual office",
                "Cross-reference with employee addresses",
            ],
        ))

    return anomalies


def detect_high_frequency(frame: pd.DataFrame, rules: Optional[HighFrequencyRules] = None) -> List[Anomaly]:
    """
    Flag vendors paid far more often than the average vendor

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: > 5x the mean per-vendor count and > 20 payments)

    Returns:
        One anomaly per qualifying vendor
    """
    rules = rules or HighFrequencyRules()

    profiles = _vendor_profile(frame)
    if profiles.empty:
        return []

    avg_count = float(profiles['count'].mean())
    anomalies = []

    for vendor, profile in profiles.iterrows():
        count = int(profile['count'])
        if count <= avg_count * rules.average_multiple or count <= rules.min_count:
            continue

        total = float(profile['total'])
        multiple = count / avg_count

        anomalies.append(Anomaly(
            kind=AnomalyType.HIGH_FREQUENCY,
            severity=Severity.HIGH if count > rules.high_count else Severity.MEDIUM,
            title="Unusually High Payment Frequency",
            description=f"{vendor} received {count} separate payments ({multiple:.0f}x average)",
            vendor=vendor,
            amount=total,
            count=count,
            details=[
                f"Vendor: {vendor}",
                f"Total payments: {count}",
                f"Average for all vendors: {avg_count:.0f} payments",
                f"This vendor: {multiple:.0f}x the average",
                f"Total amount: {format_currency(total)}",
                f"Average payment: {format_currency(total / count)}",
                f"Departments involved: {int(profile['departments'])}",
            ],
            investigation_tips=[
                "High frequency may indicate split payments to avoid thresholds",
                "Could also indicate legitimate high-volume vendor relationship",
                "Verify contract terms support payment frequency",
                "Check for duplicate services across departments",
            ],
        ))

    return anomalies


def detect_vendor_concentration(
    frame: pd.DataFrame,
    rules: Optional[VendorConcentrationRules] = None
) -> List[Anomaly]:
    """
    Flag the single largest vendor when it takes a disproportionate share of spending

    Only the top vendor is ever considered, so this emits at most one anomaly.

    Args:
        frame: Transaction frame
        rules: Thresholds (defaults: top share > 15%)

    Returns:
        Zero or one anomaly
    """
    rules = rules or VendorConcentrationRules()

    vendor_totals = frame.groupby('vendor', sort=False)['amount'].sum()
    total_spending = float(vendor_totals.sum())
    if vendor_totals.empty or total_spending <= 0:
        return []

    # sorted() is stable, so tied vendors keep first-seen order
    ranked = sorted(
        ((vendor, float(amount)) for vendor, amount in vendor_totals.items()),
        key=lambda item: item[1],
        reverse=True,
    )
    ranked = [(vendor, amount, amount / total_spending * 100) for vendor, amount in ranked]

    top_vendor, top_amount, top_share = ranked[0]
    if top_share <= rules.min_share:
        return []

    breakdown = [
        f"  {rank}. {vendor}: {format_currency(amount)} ({share:.1f}%)"
        for rank, (vendor, amount, share) in enumerate(ranked[:rules.top_n], start=1)
    ]

    return [Anomaly(
        kind=AnomalyType.VENDOR_CONCENTRATION,
        severity=Severity.HIGH if top_share > rules.high_share else Severity.MEDIUM,
        title="High Vendor Concentration",
        description=f"{top_vendor} receives {top_share:.1f}% of all spending",
        vendor=top_vendor,
        amount=top_amount,
        details=[
            f"Vendor: {top_vendor}",
            f"Total received: {format_currency(top_amount)}",
            f"Percentage of total spending: {top_share:.1f}%",
            f"Total dataset spending: {format_currency(total_spending)}",
            f"Top {rules.top_n} vendors:",
            *breakdown,
        ],
        investigation_tips=[
            "High concentration may indicate preferential treatment",
            "Verify competitive bidding was conducted",
            "Check for related party relationships",
            "Review contract award process",
        ],
    )]
