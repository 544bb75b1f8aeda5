# src/eq_position/application/schemas.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class CollateralModel(BaseModel):
    asset: str
    amount: Decimal


class PositionResponse(BaseModel):
    id: str
    role: str
    asset: str
    amount: Decimal
    rate: Decimal
    ltv: Decimal
    term_days: int
    start_date: datetime
    end_date: datetime
    accrued_interest: Decimal
    status: str
    order_id: str
    owner: str
    counterpart_id: str
    collaterals: list[CollateralModel] = []
    liquidation_threshold_price: Decimal | None = None
    liquidation_eligible: bool = False
    closed_at: datetime | None = None


class LiquidationAssessmentResponse(BaseModel):
    position_id: str
    eligible: bool
    overdue: bool
    reason: str
    collateral_price: Decimal | None = None
    threshold_price: Decimal | None = None
