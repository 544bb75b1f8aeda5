"""Compatibility predicate and first-come-first-served counter-order selection."""
from src.eq_common.enums import OrderSide
from src.eq_ledger.domain.models import Order
from src.eq_ledger.engine.ledger import Ledger


def is_compatible(lend: Order, borrow: Order) -> bool:
    """Lender's terms accept the borrower's request.

    borrower pays at least the lender's minimum rate,
    borrower's LTV within the lender's ceiling,
    lender's commitment covers the borrower's term.
    """
    return (
        lend.asset == borrow.asset
        and borrow.rate >= lend.rate
        and borrow.ltv <= lend.ltv
        and lend.term_days >= borrow.term_days
    )


def orient(incoming: Order, candidate: Order) -> tuple[Order, Order]:
    """(lend, borrow) for an incoming order and an opposite-side candidate."""
    if incoming.side == OrderSide.LEND:
        return incoming, candidate
    return candidate, incoming


def select_counter_order(incoming: Order, ledger: Ledger) -> Order | None:
    """Oldest pending opposite-side order satisfying the predicate, or None."""
    for candidate in ledger.list_pending(incoming.side.opposite, incoming.asset):
        if candidate.id == incoming.id:
            continue
        lend, borrow = orient(incoming, candidate)
        if is_compatible(lend, borrow):
            return candidate
    return None
