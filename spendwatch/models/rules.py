"""Detection thresholds, loadable from the rules section of the YAML config"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from spendwatch.constants import APPROVAL_THRESHOLDS, ROUND_NUMBER_PATTERNS
from spendwatch.utils.errors import ConfigurationError


class BenfordRules(BaseModel):
    min_amount: float = 100
    min_sample_size: int = 100
    deviation_threshold: float = 0.05
    high_deviation_threshold: float = 0.10
    top_deviations: int = 3


class DuplicatePaymentRules(BaseModel):
    min_count: int = 3
    min_amount: float = 1000
    high_count: int = 5
    high_total: float = 100000


class ThresholdAvoidanceRules(BaseModel):
    thresholds: List[float] = Field(default_factory=lambda: list(APPROVAL_THRESHOLDS))
    window_fraction: float = 0.95
    min_count: int = 3
    critical_count: int = 5
    sample_size: int = 5


class RoundNumberPattern(BaseModel):
    divisor: float = Field(..., gt=0)
    min_amount: float
    name: str


class RoundNumberRules(BaseModel):
    patterns: List[RoundNumberPattern] = Field(
        default_factory=lambda: [
            RoundNumberPattern(divisor=divisor, min_amount=min_amount, name=name)
            for divisor, min_amount, name in ROUND_NUMBER_PATTERNS
        ]
    )
    min_count: int = 4
    min_percentage: float = 50
    high_count: int = 10
    sample_size: int = 5


class WeekendPaymentRules(BaseModel):
    min_count: int = 5
    min_percentage: float = 20
    high_percentage: float = 40


class SameDayPaymentRules(BaseModel):
    min_count: int = 3
    high_count: int = 5
    high_total: float = 50000


class VendorNameRules(BaseModel):
    min_vendor_total: float = 50000
    medium_vendor_total: float = 500000


class HighFrequencyRules(BaseModel):
    average_multiple: float = 5
    min_count: int = 20
    high_count: int = 100


class LargeOutlierRules(BaseModel):
    iqr_multiplier: float = 3
    min_amount: float = 1_000_000
    critical_amount: float = 10_000_000
    max_results: int = 10


class VendorConcentrationRules(BaseModel):
    min_share: float = 15
    high_share: float = 25
    top_n: int = 5


class DetectionRules(BaseModel):
    """All detector thresholds. Defaults are the stock heuristics."""

    benford: BenfordRules = Field(default_factory=BenfordRules)
    duplicate_payments: DuplicatePaymentRules = Field(default_factory=DuplicatePaymentRules)
    threshold_avoidance: ThresholdAvoidanceRules = Field(default_factory=ThresholdAvoidanceRules)
    round_numbers: RoundNumberRules = Field(default_factory=RoundNumberRules)
    weekend_payments: WeekendPaymentRules = Field(default_factory=WeekendPaymentRules)
    same_day_payments: SameDayPaymentRules = Field(default_factory=SameDayPaymentRules)
    vendor_names: VendorNameRules = Field(default_factory=VendorNameRules)
    high_frequency: HighFrequencyRules = Field(default_factory=HighFrequencyRules)
    large_outliers: LargeOutlierRules = Field(default_factory=LargeOutlierRules)
    vendor_concentration: VendorConcentrationRules = Field(default_factory=VendorConcentrationRules)

    class Config:
        extra = "forbid"

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "DetectionRules":
        """
        Build rules from a loaded configuration dict

        Raises:
            ConfigurationError: If the rules section has unknown keys or bad values
        """
        rules = (config or {}).get('rules') or {}
        try:
            return cls(**rules)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid detection rules: {e}") from e
