# src/eq_order/api/router.py
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from src.eq_matching.application.service import get_matching_engine
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_order.application import service as svc
from src.eq_order.application.schemas import (
    CancelOrderResponse,
    MatchResponse,
    OrderBookResponse,
    OrderResponse,
    StatsResponse,
    SubmitOrderRequest,
    SubmitOrderResponse,
)

router = APIRouter(prefix="/orders", tags=["orders"])
stats_router = APIRouter(tags=["stats"])


@router.post("", response_model=SubmitOrderResponse, status_code=201)
async def submit_order(
    req: SubmitOrderRequest,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> SubmitOrderResponse:
    return await svc.submit_order(req, engine)


@router.get("/book", response_model=OrderBookResponse)
async def list_book(
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
    asset: str = Query(..., description="Asset symbol, e.g. USDC"),
    side: Literal["lend", "borrow"] = Query(..., description="Order side"),
) -> OrderBookResponse:
    return svc.list_book(asset, side, engine)


@router.post("/{order_id}/cancel", response_model=CancelOrderResponse)
async def cancel_order(
    order_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> CancelOrderResponse:
    return svc.cancel_order(order_id, engine)


@router.post("/{order_id}/match", response_model=MatchResponse)
async def attempt_match(
    order_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> MatchResponse:
    return await svc.attempt_match(order_id, engine)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> OrderResponse:
    return svc.get_order(order_id, engine)


@stats_router.get("/stats", response_model=StatsResponse)
async def get_stats(
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> StatsResponse:
    return svc.get_stats(engine)
