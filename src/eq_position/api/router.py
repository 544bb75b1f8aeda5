# src/eq_position/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends

from src.eq_matching.application.service import get_matching_engine
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_position.application import service as svc
from src.eq_position.application.schemas import (
    LiquidationAssessmentResponse,
    PositionResponse,
)

router = APIRouter(prefix="/positions", tags=["positions"])


@router.get("/{position_id}", response_model=PositionResponse)
async def get_position(
    position_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> PositionResponse:
    return svc.get_position(position_id, engine)


@router.post("/{position_id}/repay", response_model=PositionResponse)
async def repay_position(
    position_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> PositionResponse:
    return svc.repay_position(position_id, engine)


@router.get("/{position_id}/liquidation", response_model=LiquidationAssessmentResponse)
async def assess_position(
    position_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> LiquidationAssessmentResponse:
    return await svc.assess_position(position_id, engine)


@router.post("/{position_id}/liquidate", response_model=PositionResponse)
async def liquidate_position(
    position_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> PositionResponse:
    return await svc.liquidate_position(position_id, engine)
