# src/eq_order/application/service.py
from datetime import datetime

from src.eq_attestation.application.schemas import AttestationResponse
from src.eq_common.enums import OrderSide
from src.eq_common.id_generator import generate_id
from src.eq_ledger.domain.models import CollateralLine, Order
from src.eq_matching.domain.models import MatchResult
from src.eq_matching.engine.engine import MatchingEngine
from src.eq_order.application.schemas import (
    CancelOrderResponse,
    FairnessResponseModel,
    MatchResponse,
    OrderBookResponse,
    OrderResponse,
    PublicOrderResponse,
    ScoreBreakdownResponse,
    StatsResponse,
    SubmitOrderRequest,
    SubmitOrderResponse,
)
from src.eq_position.application.service import position_to_response


def _order_to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        side=order.side.value,
        asset=order.asset,
        amount=order.amount,
        rate=order.rate,
        ltv=order.ltv,
        term_days=order.term_days,
        owner=order.owner,
        status=order.status.value,
        hidden=order.hidden,
        proof_ref=order.proof_ref,
        fairness_score=order.fairness_score,
        created_at=order.created_at,
        matched_at=order.matched_at,
    )


def _order_to_public(order: Order) -> PublicOrderResponse:
    resp = PublicOrderResponse(
        id=order.id,
        side=order.side.value,
        asset=order.asset,
        status=order.status.value,
        hidden=order.hidden,
        proof_ref=order.proof_ref,
        created_at=order.created_at,
    )
    if not (order.hidden and order.is_pending):
        resp.amount = order.amount
        resp.rate = order.rate
        resp.ltv = order.ltv
        resp.term_days = order.term_days
    return resp


def _match_to_response(result: MatchResult | None, now: datetime) -> MatchResponse:
    if result is None:
        return MatchResponse(matched=False)
    fairness = result.fairness
    return MatchResponse(
        matched=True,
        lend_order_id=result.lend_order.id,
        borrow_order_id=result.borrow_order.id,
        fairness=FairnessResponseModel(
            score=fairness.score,
            final_rate=fairness.final_rate,
            breakdown=ScoreBreakdownResponse(
                retail_boost=fairness.breakdown.retail_boost,
                diversity_bonus=fairness.breakdown.diversity_bonus,
                priority_bonus=fairness.breakdown.priority_bonus,
                concentration_penalty=fairness.breakdown.concentration_penalty,
            ),
            attestation=AttestationResponse.from_domain(fairness.attestation),
        ),
        lending_position=position_to_response(result.lending_position, now),
        borrowing_position=position_to_response(result.borrowing_position, now),
    )


async def submit_order(req: SubmitOrderRequest, engine: MatchingEngine) -> SubmitOrderResponse:
    order = Order(
        id=generate_id(),
        side=OrderSide(req.side),
        asset=req.asset,
        amount=req.amount,
        rate=req.rate,
        ltv=req.ltv,
        term_days=req.term_days,
        owner=req.owner,
        hidden=req.hidden,
        proof_ref=req.proof_ref,
        collaterals=[CollateralLine(c.asset, c.amount) for c in req.collaterals],
        created_at=engine.now(),
    )
    result = await engine.submit_order(order)
    return SubmitOrderResponse(
        order=_order_to_response(result.order),
        match=_match_to_response(result.match, engine.now()),
        attestation_error=result.attestation_error,
    )


def cancel_order(order_id: str, engine: MatchingEngine) -> CancelOrderResponse:
    order = engine.cancel_order(order_id)
    return CancelOrderResponse(order_id=order.id, status=order.status.value)


async def attempt_match(order_id: str, engine: MatchingEngine) -> MatchResponse:
    result = await engine.attempt_match(order_id)
    return _match_to_response(result, engine.now())


def get_order(order_id: str, engine: MatchingEngine) -> OrderResponse:
    return _order_to_response(engine.ledger.get_order(order_id))


def list_book(asset: str, side: str, engine: MatchingEngine) -> OrderBookResponse:
    pending = engine.ledger.list_pending(OrderSide(side), asset)
    return OrderBookResponse(
        asset=asset.upper(), side=side, items=[_order_to_public(o) for o in pending]
    )


def get_stats(engine: MatchingEngine) -> StatsResponse:
    stats = engine.ledger.stats
    return StatsResponse(
        total_matched=stats.total_matched,
        total_loans=stats.total_loans,
        matched_by_asset=dict(stats.matched_by_asset),
        pending_orders=sum(1 for o in engine.ledger.orders() if o.is_pending),
    )
