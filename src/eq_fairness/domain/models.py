"""Fairness scoring models — pure dataclasses."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from src.eq_attestation.domain.models import Attestation


@dataclass(frozen=True)
class FairnessOptions:
    """Scoring weights and thresholds. Defaults are the reference policy."""

    retail_ceiling: Decimal = Decimal(10000)
    retail_weight_lend: int = 20
    retail_weight_borrow: int = 10
    retail_cap_max: int = 30
    diversity_bonus: int = 15
    priority_bonus: int = 25
    concentration_threshold: Decimal = Decimal(100000)
    concentration_step: Decimal = Decimal(10000)
    concentration_cap_max: int = 20
    base_score: int = 50

    def __post_init__(self) -> None:
        if self.retail_ceiling <= 0:
            raise ValueError("retail_ceiling must be positive")
        if self.concentration_step <= 0:
            raise ValueError("concentration_step must be positive")

    @classmethod
    def from_settings(cls, settings: Any) -> "FairnessOptions":
        return cls(
            retail_ceiling=Decimal(str(settings.FAIRNESS_RETAIL_CEILING)),
            retail_weight_lend=settings.FAIRNESS_RETAIL_WEIGHT_LEND,
            retail_weight_borrow=settings.FAIRNESS_RETAIL_WEIGHT_BORROW,
            retail_cap_max=settings.FAIRNESS_RETAIL_CAP_MAX,
            diversity_bonus=settings.FAIRNESS_DIVERSITY_BONUS,
            priority_bonus=settings.FAIRNESS_PRIORITY_BONUS,
            concentration_threshold=Decimal(str(settings.FAIRNESS_CONCENTRATION_THRESHOLD)),
            concentration_step=Decimal(str(settings.FAIRNESS_CONCENTRATION_STEP)),
            concentration_cap_max=settings.FAIRNESS_CONCENTRATION_CAP_MAX,
            base_score=settings.FAIRNESS_BASE_SCORE,
        )


@dataclass(frozen=True)
class FairnessRequest:
    lend_order_id: str
    borrow_order_id: str
    lend_amount: Decimal
    borrow_amount: Decimal
    lend_rate: Decimal
    borrow_rate: Decimal
    distinct_counterparties: bool
    priority: bool  # either side holds an active vesting/priority flag


@dataclass(frozen=True)
class ScoreBreakdown:
    retail_boost: int
    diversity_bonus: int
    priority_bonus: int
    concentration_penalty: int


@dataclass(frozen=True)
class FairnessScore:
    """Scorer output before attestation."""

    score: int  # 0-100
    final_rate: Decimal  # midpoint clearing rate
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class FairnessResponse:
    score: int
    final_rate: Decimal
    breakdown: ScoreBreakdown
    attestation: Attestation
