# src/eq_position/application/service.py
from datetime import datetime

from src.eq_ledger.domain.models import Position
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_position.application.schemas import (
    CollateralModel,
    LiquidationAssessmentResponse,
    PositionResponse,
)
from src.eq_position.domain.liquidation import is_liquidation_eligible


def position_to_response(position: Position, now: datetime) -> PositionResponse:
    return PositionResponse(
        id=position.id,
        role=position.role.value,
        asset=position.asset,
        amount=position.amount,
        rate=position.rate,
        ltv=position.ltv,
        term_days=position.term_days,
        start_date=position.start_date,
        end_date=position.end_date,
        accrued_interest=position.accrued_interest(now),
        status=position.status.value,
        order_id=position.order_id,
        owner=position.owner,
        counterpart_id=position.counterpart_id,
        collaterals=[CollateralModel(asset=c.asset, amount=c.amount) for c in position.collaterals],
        liquidation_threshold_price=position.liquidation_threshold_price,
        liquidation_eligible=is_liquidation_eligible(position, now),
        closed_at=position.closed_at,
    )


def get_position(position_id: str, engine: MatchingEngine) -> PositionResponse:
    return position_to_response(engine.get_position(position_id), engine.now())


def repay_position(position_id: str, engine: MatchingEngine) -> PositionResponse:
    return position_to_response(engine.repay_position(position_id), engine.now())


async def assess_position(position_id: str, engine: MatchingEngine) -> LiquidationAssessmentResponse:
    a = await engine.assess_position(position_id)
    return LiquidationAssessmentResponse(
        position_id=a.position_id,
        eligible=a.eligible,
        overdue=a.overdue,
        reason=a.reason,
        collateral_price=a.collateral_price,
        threshold_price=a.threshold_price,
    )


async def liquidate_position(position_id: str, engine: MatchingEngine) -> PositionResponse:
    position = await engine.liquidate_position(position_id)
    return position_to_response(position, engine.now())
