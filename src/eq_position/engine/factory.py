"""Position Factory — turns a matched (lend, borrow) pair into two positions.

  amount  = min(lend.amount, borrow.amount); the larger order is not split
  term    = borrower's term (the predicate already enforced lend.term >= borrow.term)
  rates   = each side keeps its own requested rate; the fairness midpoint is
            a settlement reference only
"""
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.eq_common.datetime_utils import add_days, utc_now
from src.eq_common.enums import OrderSide, PositionRole
from src.eq_common.errors import InvalidOrderError
from src.eq_common.id_generator import generate_id
from src.eq_ledger.domain.models import CollateralLine, Order, Position


@dataclass(frozen=True)
class CollateralPolicy:
    default_asset: str = "SUI"
    default_factor: Decimal = Decimal("1.5")  # collateral = factor x amount when none posted
    liquidation_ratio: Decimal = Decimal("0.8")

    @classmethod
    def from_settings(cls, settings: Any) -> "CollateralPolicy":
        return cls(
            default_asset=settings.DEFAULT_COLLATERAL_ASSET,
            default_factor=Decimal(str(settings.DEFAULT_COLLATERAL_FACTOR)),
            liquidation_ratio=Decimal(str(settings.LIQUIDATION_COLLATERAL_RATIO)),
        )


DEFAULT_POLICY = CollateralPolicy()


def collateral_lines(borrow: Order, amount: Decimal, policy: CollateralPolicy) -> list[CollateralLine]:
    if borrow.collaterals:
        return [CollateralLine(c.asset.upper(), c.amount) for c in borrow.collaterals]
    return [CollateralLine(policy.default_asset, amount * policy.default_factor)]


def liquidation_threshold_price(
    amount: Decimal, collaterals: list[CollateralLine], ratio: Decimal
) -> Decimal | None:
    """Primary-collateral price at which debt = collateral value x ratio."""
    if not collaterals or collaterals[0].amount <= 0 or ratio <= 0:
        return None
    return amount / (collaterals[0].amount * ratio)


def materialize(
    lend: Order,
    borrow: Order,
    start: datetime | None = None,
    policy: CollateralPolicy = DEFAULT_POLICY,
    id_factory: Callable[[], str] = generate_id,
) -> tuple[Position, Position]:
    """Returns (lending_position, borrowing_position), linked as counterparts."""
    if lend.side != OrderSide.LEND or borrow.side != OrderSide.BORROW:
        raise InvalidOrderError("materialize expects (lend, borrow)")
    if lend.asset != borrow.asset:
        raise InvalidOrderError(f"asset mismatch: {lend.asset} vs {borrow.asset}")

    start = start or utc_now()
    amount = min(lend.amount, borrow.amount)
    term_days = borrow.term_days
    end = add_days(start, term_days)
    collaterals = collateral_lines(borrow, amount, policy)

    lending = Position(
        id=id_factory(),
        role=PositionRole.LENDING,
        asset=lend.asset,
        amount=amount,
        rate=lend.rate,
        ltv=lend.ltv,
        term_days=term_days,
        start_date=start,
        end_date=end,
        order_id=lend.id,
        owner=lend.owner,
    )
    borrowing = Position(
        id=id_factory(),
        role=PositionRole.BORROWING,
        asset=borrow.asset,
        amount=amount,
        rate=borrow.rate,
        ltv=borrow.ltv,
        term_days=term_days,
        start_date=start,
        end_date=end,
        order_id=borrow.id,
        owner=borrow.owner,
        counterpart_id=lending.id,
        collaterals=collaterals,
        liquidation_threshold_price=liquidation_threshold_price(
            amount, collaterals, policy.liquidation_ratio
        ),
    )
    lending.counterpart_id = borrowing.id
    return lending, borrowing
