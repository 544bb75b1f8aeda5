"""Order admission rules. Each raises InvalidOrderError; nothing invalid enters the Ledger."""
import hashlib
from decimal import Decimal

from src.eq_common.enums import OrderSide
from src.eq_common.errors import InvalidOrderError
from src.eq_ledger.domain.models import Order

LTV_MIN = Decimal(0)
LTV_MAX = Decimal(100)


def check_amount(amount: Decimal) -> None:
    if not amount.is_finite() or amount <= 0:
        raise InvalidOrderError(f"amount must be positive, got {amount}")


def check_rate(rate: Decimal) -> None:
    if not rate.is_finite() or rate <= 0:
        raise InvalidOrderError(f"rate must be positive, got {rate}")


def check_ltv(ltv: Decimal) -> None:
    if not ltv.is_finite() or not (LTV_MIN <= ltv <= LTV_MAX):
        raise InvalidOrderError(f"ltv must be within [0, 100], got {ltv}")


def check_term(term_days: int) -> None:
    # bool is an int subclass; True days is not a term
    if isinstance(term_days, bool) or not isinstance(term_days, int) or term_days <= 0:
        raise InvalidOrderError(f"term_days must be a positive integer, got {term_days!r}")


def check_collaterals(order: Order) -> None:
    if order.collaterals and order.side != OrderSide.BORROW:
        raise InvalidOrderError("only borrow orders carry collateral")
    for line in order.collaterals:
        if not line.asset:
            raise InvalidOrderError("collateral asset is required")
        if not line.amount.is_finite() or line.amount <= 0:
            raise InvalidOrderError(f"collateral amount must be positive, got {line.amount}")


def validate_order(order: Order) -> None:
    if not order.asset:
        raise InvalidOrderError("asset is required")
    check_amount(order.amount)
    check_rate(order.rate)
    check_ltv(order.ltv)
    check_term(order.term_days)
    check_collaterals(order)


def commitment_for(order: Order) -> str:
    """0x + sha256 over the order's economic terms.

    Published in place of the terms while a hidden order is pending.
    """
    payload = "|".join(
        [
            order.id,
            order.side.value,
            order.asset,
            str(order.amount),
            str(order.rate),
            str(order.ltv),
            str(order.term_days),
            order.owner,
        ]
    )
    return "0x" + hashlib.sha256(payload.encode("utf-8")).hexdigest()
