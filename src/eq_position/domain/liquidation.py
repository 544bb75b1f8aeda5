"""Liquidation eligibility for borrowing positions.

Time-based: an active borrowing position is eligible once now > end_date.
Price-based (only when an oracle is consulted and the loan is not overdue):
eligible when the primary collateral price is at or below the position's
liquidation threshold price. Stale quotes are refused, never acted on.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.eq_common.enums import PositionRole
from src.eq_common.errors import PriceUnavailableError, StalePriceError
from src.eq_ledger.domain.models import Position
from src.eq_oracle.domain.models import PriceOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidationAssessment:
    position_id: str
    eligible: bool
    overdue: bool
    reason: str
    collateral_price: Decimal | None = None
    threshold_price: Decimal | None = None


def is_liquidation_eligible(position: Position, now: datetime) -> bool:
    return (
        position.role == PositionRole.BORROWING
        and position.is_active
        and position.is_overdue(now)
    )


async def assess_liquidation(
    position: Position,
    now: datetime,
    oracle: PriceOracle | None = None,
    max_price_age_seconds: float = 60.0,
) -> LiquidationAssessment:
    """Raises StalePriceError when the consulted quote is too old.

    No quote at all falls back to the time-based rule (within term).
    """
    if position.role != PositionRole.BORROWING:
        return LiquidationAssessment(position.id, False, False, "not a borrowing position")
    if not position.is_active:
        return LiquidationAssessment(position.id, False, False, f"position is {position.status.value}")
    if position.is_overdue(now):
        return LiquidationAssessment(position.id, True, True, "term expired")

    threshold = position.liquidation_threshold_price
    if oracle is None or threshold is None or position.collateral_asset is None:
        return LiquidationAssessment(position.id, False, False, "within term", threshold_price=threshold)

    try:
        quote = await oracle.get_price(position.collateral_asset)
    except PriceUnavailableError:
        logger.debug("No %s price for position %s", position.collateral_asset, position.id)
        return LiquidationAssessment(position.id, False, False, "within term", threshold_price=threshold)
    age = quote.age_seconds(now)
    if age > max_price_age_seconds:
        logger.warning(
            "Refusing stale %s price for position %s (age %.1fs)",
            quote.asset, position.id, age,
        )
        raise StalePriceError(quote.asset, age, max_price_age_seconds)
    below = quote.price <= threshold
    return LiquidationAssessment(
        position.id,
        below,
        False,
        "collateral below threshold" if below else "collateral healthy",
        collateral_price=quote.price,
        threshold_price=threshold,
    )
