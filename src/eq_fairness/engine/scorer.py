"""Fairness scorer — pure, deterministic, stateless.

score = clamp(base + retail_boost + diversity + priority - concentration, 0, 100)

  retail_boost   per side below retail_ceiling: floor(W_side * (1 - amount / ceiling)),
                 summed then capped at retail_cap_max
  diversity      flat bonus when lender and borrower are distinct counterparties
  priority       flat bonus when either side holds an active priority/vesting flag
  concentration  when lend + borrow volume exceeds the threshold:
                 min(cap, floor((volume - threshold) / step))

final_rate is the midpoint of the two requested rates. It is a settlement
reference; each position keeps its own side's rate.
"""
import math
from decimal import Decimal

from src.eq_fairness.domain.models import (
    FairnessOptions,
    FairnessRequest,
    FairnessScore,
    ScoreBreakdown,
)

SCORE_MIN = 0
SCORE_MAX = 100

DEFAULT_OPTIONS = FairnessOptions()


def side_retail_boost(amount: Decimal, weight: int, ceiling: Decimal) -> int:
    """Boost contributed by one side. Non-increasing in amount; 0 at/above ceiling."""
    if amount >= ceiling:
        return 0
    return math.floor(weight * (1 - amount / ceiling))


def retail_boost(req: FairnessRequest, opts: FairnessOptions) -> int:
    boost = side_retail_boost(req.lend_amount, opts.retail_weight_lend, opts.retail_ceiling)
    boost += side_retail_boost(req.borrow_amount, opts.retail_weight_borrow, opts.retail_ceiling)
    return min(boost, opts.retail_cap_max)


def concentration_penalty(req: FairnessRequest, opts: FairnessOptions) -> int:
    volume = req.lend_amount + req.borrow_amount
    if volume <= opts.concentration_threshold:
        return 0
    steps = math.floor((volume - opts.concentration_threshold) / opts.concentration_step)
    return min(opts.concentration_cap_max, steps)


def clearing_rate(lend_rate: Decimal, borrow_rate: Decimal) -> Decimal:
    return (lend_rate + borrow_rate) / 2


def compute_score(
    req: FairnessRequest, opts: FairnessOptions = DEFAULT_OPTIONS
) -> FairnessScore:
    breakdown = ScoreBreakdown(
        retail_boost=retail_boost(req, opts),
        diversity_bonus=opts.diversity_bonus if req.distinct_counterparties else 0,
        priority_bonus=opts.priority_bonus if req.priority else 0,
        concentration_penalty=concentration_penalty(req, opts),
    )
    raw = (
        opts.base_score
        + breakdown.retail_boost
        + breakdown.diversity_bonus
        + breakdown.priority_bonus
        - breakdown.concentration_penalty
    )
    return FairnessScore(
        score=max(SCORE_MIN, min(SCORE_MAX, raw)),
        final_rate=clearing_rate(req.lend_rate, req.borrow_rate),
        breakdown=breakdown,
    )
