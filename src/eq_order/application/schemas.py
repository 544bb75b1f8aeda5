# src/eq_order/application/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, field_validator

from src.eq_attestation.application.schemas import AttestationResponse
from src.eq_position.application.schemas import CollateralModel, PositionResponse


class SubmitOrderRequest(BaseModel):
    """Range checks (positive amount/rate/term, LTV in [0, 100]) happen at Ledger insert."""

    side: Literal["lend", "borrow"]
    asset: str
    amount: Decimal
    rate: Decimal
    ltv: Decimal
    term_days: int
    owner: str = ""
    hidden: bool = False
    proof_ref: str | None = None
    collaterals: list[CollateralModel] = []

    @field_validator("asset")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("asset must be a symbol without whitespace")
        return v


class OrderResponse(BaseModel):
    id: str
    side: str
    asset: str
    amount: Decimal
    rate: Decimal
    ltv: Decimal
    term_days: int
    owner: str
    status: str
    hidden: bool
    proof_ref: str | None = None
    fairness_score: int | None = None
    created_at: datetime | None = None
    matched_at: datetime | None = None


class PublicOrderResponse(BaseModel):
    """Book listing entry. Terms of hidden pending orders are withheld."""

    id: str
    side: str
    asset: str
    status: str
    hidden: bool
    proof_ref: str | None = None
    amount: Decimal | None = None
    rate: Decimal | None = None
    ltv: Decimal | None = None
    term_days: int | None = None
    created_at: datetime | None = None


class ScoreBreakdownResponse(BaseModel):
    retail_boost: int
    diversity_bonus: int
    priority_bonus: int
    concentration_penalty: int


class FairnessResponseModel(BaseModel):
    score: int
    final_rate: Decimal
    breakdown: ScoreBreakdownResponse
    attestation: AttestationResponse


class MatchResponse(BaseModel):
    matched: bool
    lend_order_id: str | None = None
    borrow_order_id: str | None = None
    fairness: FairnessResponseModel | None = None
    lending_position: PositionResponse | None = None
    borrowing_position: PositionResponse | None = None


class SubmitOrderResponse(BaseModel):
    order: OrderResponse
    match: MatchResponse
    attestation_error: str | None = None


class CancelOrderResponse(BaseModel):
    order_id: str
    status: str


class OrderBookResponse(BaseModel):
    asset: str
    side: str
    items: list[PublicOrderResponse]


class StatsResponse(BaseModel):
    total_matched: Decimal
    total_loans: int
    matched_by_asset: dict[str, Decimal]
    pending_orders: int
