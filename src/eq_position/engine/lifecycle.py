"""Position state machine actions: repay and liquidate.

active -> completed   (voluntary full repayment)
active -> liquidated  (eligible + liquidation action)

Both act on the match pair: the lending and borrowing positions always
leave ACTIVE together.
"""
import logging
from datetime import datetime

from src.eq_common.datetime_utils import utc_now
from src.eq_common.enums import PositionRole, PositionStatus
from src.eq_common.errors import PositionNotActiveError, PositionNotLiquidatableError
from src.eq_ledger.domain.models import Position
from src.eq_ledger.engine.ledger import Ledger
from src.eq_oracle.domain.models import PriceOracle
from src.eq_position.domain.liquidation import LiquidationAssessment, assess_liquidation

logger = logging.getLogger(__name__)


def _borrowing_side(ledger: Ledger, position_id: str) -> Position:
    position = ledger.get_position(position_id)
    if position.role == PositionRole.BORROWING:
        return position
    return ledger.get_position(position.counterpart_id)


def repay(ledger: Ledger, position_id: str, now: datetime | None = None) -> Position:
    """Full repayment. Returns the requested position, now completed."""
    now = now or utc_now()
    position, _ = ledger.close_position_pair(position_id, PositionStatus.COMPLETED, now)
    logger.info(
        "Repaid %s (interest %s %s)",
        position.id, position.accrued_interest(now), position.asset,
    )
    return position


async def assess(
    ledger: Ledger,
    position_id: str,
    now: datetime | None = None,
    oracle: PriceOracle | None = None,
    max_price_age_seconds: float = 60.0,
) -> LiquidationAssessment:
    borrowing = _borrowing_side(ledger, position_id)
    return await assess_liquidation(borrowing, now or utc_now(), oracle, max_price_age_seconds)


async def liquidate(
    ledger: Ledger,
    position_id: str,
    now: datetime | None = None,
    oracle: PriceOracle | None = None,
    max_price_age_seconds: float = 60.0,
) -> Position:
    """Liquidate the borrowing side of the pair containing `position_id`.

    Raises PositionNotActiveError, PositionNotLiquidatableError, StalePriceError.
    """
    now = now or utc_now()
    borrowing = _borrowing_side(ledger, position_id)
    if not borrowing.is_active:
        raise PositionNotActiveError(borrowing.id, borrowing.status.value)
    verdict = await assess_liquidation(borrowing, now, oracle, max_price_age_seconds)
    if not verdict.eligible:
        raise PositionNotLiquidatableError(borrowing.id, verdict.reason)
    ledger.close_position_pair(borrowing.id, PositionStatus.LIQUIDATED, now)
    logger.info("Liquidated %s: %s", borrowing.id, verdict.reason)
    return ledger.get_position(position_id)
