"""Ledger domain models — pure dataclasses, no framework dependency."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.eq_common.enums import OrderSide, OrderStatus, PositionRole, PositionStatus
from src.eq_position.domain.accrual import accrued_interest


@dataclass
class CollateralLine:
    asset: str
    amount: Decimal


@dataclass
class Order:
    id: str
    side: OrderSide
    asset: str
    amount: Decimal  # display units of `asset`
    rate: Decimal  # annualized %, lender minimum / borrower maximum
    ltv: Decimal  # 0-100, lender ceiling / borrower target
    term_days: int
    owner: str = ""  # counterparty address
    status: OrderStatus = OrderStatus.PENDING
    hidden: bool = False
    collaterals: list[CollateralLine] = field(default_factory=list)  # borrow side only
    created_at: datetime | None = None
    matched_at: datetime | None = None
    fairness_score: int | None = None
    proof_ref: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def is_lend(self) -> bool:
        return self.side == OrderSide.LEND


@dataclass
class Position:
    id: str
    role: PositionRole
    asset: str
    amount: Decimal
    rate: Decimal
    ltv: Decimal
    term_days: int
    start_date: datetime
    end_date: datetime
    order_id: str
    owner: str = ""
    counterpart_id: str = ""  # the other side of the same match
    status: PositionStatus = PositionStatus.ACTIVE
    # Borrowing side only
    collaterals: list[CollateralLine] = field(default_factory=list)
    liquidation_threshold_price: Decimal | None = None
    # Set when the position leaves ACTIVE; interest stops accruing here
    closed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == PositionStatus.ACTIVE

    @property
    def collateral_asset(self) -> str | None:
        return self.collaterals[0].asset if self.collaterals else None

    @property
    def collateral_amount(self) -> Decimal | None:
        return self.collaterals[0].amount if self.collaterals else None

    def accrued_interest(self, now: datetime) -> Decimal:
        """Interest earned (lending) or owed (borrowing) as of `now`."""
        until = now if self.closed_at is None else min(now, self.closed_at)
        return accrued_interest(self.amount, self.asset, self.rate, self.start_date, until)

    def is_overdue(self, now: datetime) -> bool:
        return now > self.end_date


@dataclass
class MarketStats:
    total_matched: Decimal = Decimal(0)
    total_loans: int = 0
    matched_by_asset: dict[str, Decimal] = field(default_factory=dict)
